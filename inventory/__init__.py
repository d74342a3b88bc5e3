"""
Inventory Management Application

Stock tracking for a dental practice: consumables, instruments and
medication, each with a selling price, a purchase cost, a reorder level
and an optional expiry date.

FEATURES:
- Product catalogue grouped by category
- Barcode lookup (case-insensitive SKU match)
- Row-locked stock adjustments (select_for_update)
- Complete audit trail for all inventory movements
- Low stock and expiry alerts
- REST API endpoints for the practice front-end and offline client

MODELS:
- Category: Product categories
- Product: Stock items with SKU, price, cost, stock and reorder level
- StockEntry: All inventory movements with complete audit trail

BUSINESS LOGIC:
  - Stock status: 'out' (stock <= 0), 'low' (stock <= min_stock), 'in'
  - Expiry status: 'expired', 'expiring' (within the warning window), 'ok'
  - Stock only changes through Product.adjust_stock(), which writes a
    StockEntry in the same transaction
  - Products referenced by an invoice cannot be deleted

USAGE:
    from inventory.models import Category, Product

    composites = Category.objects.create(name="Composites")

    resin = Product.objects.create(
        name="Composite A2",
        sku="CMP-A2",
        category=composites,
        price=2500,
        cost=1800,
        min_stock=5,
    )

    # Receive 20 syringes from a supplier
    resin.adjust_stock(20, entry_type='purchase', reference_id='INV-0007')

VERSION: 1.0.0
"""

__version__ = '1.0.0'
