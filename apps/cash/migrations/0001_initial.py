# Generated manually for cash app

import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('payments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CashRegisterSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('branch_ref', models.CharField(db_index=True, max_length=64)),
                ('operator', models.CharField(blank=True, max_length=150)),
                ('opening_balance', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.00'))])),
                ('opened_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('status', models.CharField(choices=[('open', 'Open'), ('closed', 'Closed')], default='open', max_length=10)),
                ('closing_balance', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('expected_cash_at_close', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('cash_difference', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('reconciliation', models.CharField(blank=True, choices=[('balanced', 'Balanced'), ('surplus', 'Surplus'), ('shortage', 'Shortage')], max_length=10)),
                ('payment_method_totals', models.JSONField(blank=True, default=dict)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'cash_register_sessions',
                'ordering': ['-opened_at'],
            },
        ),
        migrations.CreateModel(
            name='CashMovement',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('direction', models.CharField(choices=[('inflow', 'Inflow'), ('outflow', 'Outflow')], max_length=10)),
                ('kind', models.CharField(choices=[('sale', 'Sale'), ('deposit', 'Deposit'), ('withdrawal', 'Withdrawal'), ('expense', 'Expense'), ('adjustment', 'Adjustment')], default='sale', max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.00'))])),
                ('affects_balance', models.BooleanField(default=True)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('reference', models.CharField(blank=True, db_index=True, max_length=64)),
                ('occurred_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('payment_method', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='cash_movements', to='payments.paymentmethod')),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='cash.cashregistersession')),
            ],
            options={
                'db_table': 'cash_movements',
                'ordering': ['occurred_at', 'created_at'],
            },
        ),
        migrations.AddConstraint(
            model_name='cashregistersession',
            constraint=models.UniqueConstraint(condition=models.Q(('status', 'open')), fields=('branch_ref',), name='unique_open_session_per_branch'),
        ),
        migrations.AddIndex(
            model_name='cashregistersession',
            index=models.Index(fields=['branch_ref', 'status'], name='cash_regist_branch__3f1a9c_idx'),
        ),
        migrations.AddIndex(
            model_name='cashregistersession',
            index=models.Index(fields=['opened_at'], name='cash_regist_opened__8d2e47_idx'),
        ),
        migrations.AddIndex(
            model_name='cashmovement',
            index=models.Index(fields=['session', 'occurred_at'], name='cash_moveme_session_b71c05_idx'),
        ),
        migrations.AddIndex(
            model_name='cashmovement',
            index=models.Index(fields=['occurred_at'], name='cash_moveme_occurre_4e9d13_idx'),
        ),
    ]
