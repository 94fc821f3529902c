import pytest
from decimal import Decimal
from apps.sales.serializers import SaleInputSerializer


# =============================================================================
# SaleInputSerializer Tests
# =============================================================================

@pytest.mark.django_db
class TestSaleInputSerializer:
    """Tests for the sale confirmation payload."""

    def test_valid_payload(self, cash_method, sale_payload):
        """Lines, combos and payments are all validated."""
        serializer = SaleInputSerializer(data=sale_payload)

        assert serializer.is_valid(), serializer.errors
        data = serializer.validated_data
        assert data['branch_ref'] == 'BR-1'
        assert len(data['lines']) == 1
        assert data['combos'][0]['quantity'] == 1
        assert data['payments'][0]['amount'] == Decimal('20.00')

    def test_requires_line_or_combo(self, cash_method):
        """An empty cart is rejected."""
        serializer = SaleInputSerializer(data={
            'branch_ref': 'BR-1',
            'payments': [{'method_ref': 'cash', 'amount': '10.00'}],
        })

        assert not serializer.is_valid()
        assert 'lines' in serializer.errors

    def test_unknown_method(self, db, sale_payload):
        """Payment methods are checked against the registry."""
        serializer = SaleInputSerializer(data=sale_payload)

        assert not serializer.is_valid()
        assert 'payments' in serializer.errors

    def test_change_row_out_of_range(self, cash_method, sale_payload):
        """The change row must be one of the payment rows."""
        sale_payload['change_row'] = 3
        serializer = SaleInputSerializer(data=sale_payload)

        assert not serializer.is_valid()
        assert 'change_row' in serializer.errors

    def test_percent_global_discount_capped(self, cash_method, sale_payload):
        """A percent global discount cannot exceed 100."""
        sale_payload['global_discount'] = {'kind': 'percent', 'value': '120'}
        serializer = SaleInputSerializer(data=sale_payload)

        assert not serializer.is_valid()
        assert 'global_discount' in serializer.errors
