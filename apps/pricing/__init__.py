"""
Pricing App - Cart Pricing Engine

Pure pricing functions shared by the checkout flow, the catalog screen and
combo bundling. Nothing in this app touches the database.

Key Features:
- Fixed 2-decimal money rounding and exact-cent proportional allocation
- Per-line discounts resolved before tax, global discount after tax
- Per-rate tax breakdown
- Combo decomposition into individually discounted cart lines

Architecture:
- money: rounding, allocation, display formatting
- discounts: Discount value type (none | percent | amount)
- cart: CartLine input type
- totals: compute_totals pipeline
- combos: ComboDefinition, combo_price, expand_combo
- serializers: DRF input serializers for untrusted payloads
"""

__version__ = '1.0.0'
