# Generated manually for sales app

import uuid
from decimal import Decimal
from django.db import migrations, models
import django.db.models.deletion


DISCOUNT_KINDS = [('none', 'No discount'), ('percent', 'Percentage'), ('amount', 'Fixed amount')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('cash', '0001_initial'),
        ('payments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Sale',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('branch_ref', models.CharField(max_length=64)),
                ('gross_before_discounts', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('item_discount_total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('subtotal_net', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_tax', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('global_discount_kind', models.CharField(choices=DISCOUNT_KINDS, default='none', max_length=10)),
                ('global_discount_value', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=12)),
                ('global_discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('grand_total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('tax_breakdown', models.JSONField(blank=True, default=list)),
                ('payment_discount_total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('final_total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('amount_tendered', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('change_given', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales', to='cash.cashregistersession')),
            ],
            options={
                'db_table': 'sales',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='SaleLine',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('position', models.PositiveIntegerField()),
                ('product_ref', models.CharField(max_length=64)),
                ('quantity', models.PositiveIntegerField()),
                ('unit_price_net', models.DecimalField(decimal_places=4, max_digits=12)),
                ('tax_rate', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=7)),
                ('discount_kind', models.CharField(choices=DISCOUNT_KINDS, default='none', max_length=10)),
                ('discount_value', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=12)),
                ('origin', models.CharField(choices=[('standalone', 'Standalone'), ('combo', 'Combo')], default='standalone', max_length=10)),
                ('combo_ref', models.CharField(blank=True, max_length=64)),
                ('discounted_unit_net', models.DecimalField(decimal_places=4, max_digits=12)),
                ('line_net', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('line_tax', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('line_total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('global_discount_share', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('sale', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='sales.sale')),
            ],
            options={
                'db_table': 'sale_lines',
                'ordering': ['sale', 'position'],
            },
        ),
        migrations.CreateModel(
            name='SalePayment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('position', models.PositiveIntegerField()),
                ('submitted_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('gave_change', models.BooleanField(default=False)),
                ('payment_method', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sale_payments', to='payments.paymentmethod')),
                ('sale', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='sales.sale')),
            ],
            options={
                'db_table': 'sale_payments',
                'ordering': ['sale', 'position'],
            },
        ),
        migrations.AddIndex(
            model_name='sale',
            index=models.Index(fields=['branch_ref', 'created_at'], name='sales_branch__c4a1f7_idx'),
        ),
        migrations.AddIndex(
            model_name='sale',
            index=models.Index(fields=['session'], name='sales_session_9e3b21_idx'),
        ),
    ]
