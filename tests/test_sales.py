from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from rest_framework.exceptions import ValidationError

from inventory.models import StockEntry
from sales.models import Invoice
from sales.services import invoice_service
from sales.services.invoice_service import next_invoice_number, post_invoice

INVOICES_URL = '/api/sales/invoices/'


def invoice_url(invoice, action=None):
    url = f"{INVOICES_URL}{invoice.pk}/"
    return f"{url}{action}/" if action else url


@pytest.fixture
def no_negative_stock(settings):
    settings.INVENTORY_CONFIG = {**settings.INVENTORY_CONFIG, 'ALLOW_NEGATIVE_STOCK': False}


@pytest.fixture
def sale(product, client_entity, user):
    return post_invoice(
        invoice_type='sale',
        items=[{'product': product, 'quantity': 3}],
        user=user,
        entity=client_entity,
    )


@pytest.mark.django_db
class TestPostInvoice:

    def test_sale_takes_stock_out(self, sale, product):
        product.refresh_from_db()
        assert product.stock == 47

        assert sale.number == 'INV-0001'
        assert sale.entity_name == 'Karim Haddad'
        assert sale.subtotal == Decimal('450.00')
        assert sale.total == Decimal('450.00')
        assert sale.status == Invoice.PENDING

        item = sale.items.get()
        assert item.product_name == 'Articaïne 4%'
        assert item.unit_price == Decimal('150.00')
        assert item.cost == Decimal('90.00')
        assert item.total == Decimal('450.00')

        entry = StockEntry.objects.get(product=product)
        assert entry.quantity == -3
        assert entry.entry_type == 'sale'
        assert entry.reference_id == 'INV-0001'

    def test_purchase_brings_stock_in_at_cost(self, product, supplier):
        invoice = post_invoice(
            invoice_type='purchase',
            items=[{'product': product, 'quantity': 20}],
            entity=supplier,
            paid_amount=Decimal('1800.00'),
        )

        product.refresh_from_db()
        assert product.stock == 70
        assert invoice.total == Decimal('1800.00')
        assert invoice.status == Invoice.PAID
        assert invoice.profit is None
        assert StockEntry.objects.get(product=product).quantity == 20

    def test_client_prices_are_kept(self, product, client_entity):
        invoice = post_invoice(
            invoice_type='sale',
            items=[{'product': product, 'quantity': 2, 'unit_price': Decimal('140.00'), 'product_name': 'Articaïne (promo)'}],
            entity=client_entity,
        )

        item = invoice.items.get()
        assert item.unit_price == Decimal('140.00')
        assert item.product_name == 'Articaïne (promo)'
        assert invoice.total == Decimal('280.00')

    def test_profit_and_proforma(self, sale):
        assert sale.cost_of_goods == Decimal('270.00')
        assert sale.profit == Decimal('180.00')
        assert sale.is_proforma
        assert sale.balance_due == Decimal('450.00')

    def test_draft_is_kept(self, product, client_entity):
        invoice = post_invoice(
            invoice_type='sale',
            items=[{'product': product, 'quantity': 1}],
            entity=client_entity,
            paid_amount=Decimal('150.00'),
            status=Invoice.DRAFT,
        )
        assert invoice.status == Invoice.DRAFT

    def test_entity_must_match_type(self, product, supplier):
        with pytest.raises(ValidationError):
            post_invoice(invoice_type='sale', items=[{'product': product, 'quantity': 1}], entity=supplier)

        assert not Invoice.objects.exists()
        product.refresh_from_db()
        assert product.stock == 50

    def test_paid_above_total_is_refused(self, product, client_entity):
        with pytest.raises(ValidationError) as exc:
            post_invoice(
                invoice_type='sale',
                items=[{'product': product, 'quantity': 3}],
                entity=client_entity,
                paid_amount=Decimal('500.00'),
            )

        assert 'paid_amount' in exc.value.detail
        assert not Invoice.objects.exists()
        product.refresh_from_db()
        assert product.stock == 50

    def test_entity_or_name_required(self, product):
        with pytest.raises(ValidationError):
            post_invoice(invoice_type='sale', items=[{'product': product, 'quantity': 1}])

        invoice = post_invoice(invoice_type='sale', items=[{'product': product, 'quantity': 1}], entity_name='Passage')
        assert invoice.entity is None
        assert invoice.entity_name == 'Passage'

    def test_refused_stock_change_rolls_everything_back(self, product, composite, client_entity, no_negative_stock):
        with pytest.raises(ValidationError):
            post_invoice(
                invoice_type='sale',
                items=[
                    {'product': product, 'quantity': 2},
                    {'product': composite, 'quantity': 10},
                ],
                entity=client_entity,
            )

        assert not Invoice.objects.exists()
        assert not StockEntry.objects.exists()
        product.refresh_from_db()
        composite.refresh_from_db()
        assert product.stock == 50
        assert composite.stock == 5

    def test_duplicate_number(self, sale, product, client_entity):
        with pytest.raises(ValidationError):
            post_invoice(
                invoice_type='sale',
                items=[{'product': product, 'quantity': 1}],
                entity=client_entity,
                number=sale.number,
            )
        product.refresh_from_db()
        assert product.stock == 47


@pytest.mark.django_db
class TestInvoiceNumbers:

    def test_first_number(self):
        assert next_invoice_number() == 'INV-0001'
        assert next_invoice_number('POS') == 'POS-0001'

    def test_follows_highest_number(self, product):
        for number in ('INV-0009', 'INV-0002', 'INV-OLD', 'POS-0040'):
            post_invoice(
                invoice_type='sale',
                items=[{'product': product, 'quantity': 1}],
                entity_name='Passage',
                number=number,
            )

        assert next_invoice_number() == 'INV-0010'
        assert next_invoice_number('POS') == 'POS-0041'


@pytest.mark.django_db
class TestCart:

    def test_merge_cart(self, product, composite):
        merged = invoice_service.merge_cart([
            {'product': product, 'quantity': 2},
            {'product': composite, 'quantity': 0},
            {'product': product, 'quantity': 1},
            {'product': composite, 'quantity': -4},
        ])
        assert merged == [{'product': product, 'quantity': 3}]


@pytest.mark.django_db
class TestInvoiceApi:

    def test_create_sale(self, api_client, product, client_entity, user):
        response = api_client.post(INVOICES_URL, {
            'type': 'sale',
            'entity': str(client_entity.pk),
            'items': [{'product': str(product.pk), 'quantity': 4}],
            'paid_amount': '100.00',
            'total': '1.00',
        }, format='json')

        assert response.status_code == 201
        assert response.data['number'] == 'INV-0001'
        assert response.data['total'] == Decimal('600.00')
        assert response.data['balance_due'] == Decimal('500.00')
        assert response.data['status'] == 'pending'
        assert response.data['is_proforma'] is True
        assert response.data['created_by'] == user.pk
        assert response.data['items'][0]['total'] == Decimal('600.00')

        product.refresh_from_db()
        assert product.stock == 46

    def test_create_requires_items(self, api_client, client_entity):
        response = api_client.post(INVOICES_URL, {
            'type': 'sale', 'entity': str(client_entity.pk), 'items': [],
        }, format='json')

        assert response.status_code == 400
        assert 'items' in response.data

    def test_create_requires_entity_or_name(self, api_client, product):
        response = api_client.post(INVOICES_URL, {
            'type': 'sale', 'items': [{'product': str(product.pk), 'quantity': 1}],
        }, format='json')

        assert response.status_code == 400
        assert 'entity_name' in response.data

    def test_create_rejects_wrong_entity_type(self, api_client, product, supplier):
        response = api_client.post(INVOICES_URL, {
            'type': 'sale',
            'entity': str(supplier.pk),
            'items': [{'product': str(product.pk), 'quantity': 1}],
        }, format='json')

        assert response.status_code == 400
        assert 'entity' in response.data

    def test_create_rejects_overpayment(self, api_client, product, client_entity):
        response = api_client.post(INVOICES_URL, {
            'type': 'sale',
            'entity': str(client_entity.pk),
            'items': [{'product': str(product.pk), 'quantity': 3}],
            'paid_amount': '500.00',
        }, format='json')

        assert response.status_code == 400
        assert 'paid_amount' in response.data
        assert not Invoice.objects.exists()

    def test_create_rejects_used_number(self, api_client, sale, product, client_entity):
        response = api_client.post(INVOICES_URL, {
            'type': 'sale',
            'number': sale.number,
            'entity': str(client_entity.pk),
            'items': [{'product': str(product.pk), 'quantity': 1}],
        }, format='json')

        assert response.status_code == 400
        assert 'number' in response.data

    def test_insufficient_stock_is_reported(self, api_client, composite, client_entity, no_negative_stock):
        response = api_client.post(INVOICES_URL, {
            'type': 'sale',
            'entity': str(client_entity.pk),
            'items': [{'product': str(composite.pk), 'quantity': 9}],
        }, format='json')

        assert response.status_code == 400
        assert 'Insufficient stock' in response.data['error']
        assert not Invoice.objects.exists()

    def test_list_is_paginated_newest_first(self, api_client, product, client_entity):
        for _ in range(3):
            post_invoice(invoice_type='sale', items=[{'product': product, 'quantity': 1}], entity=client_entity)

        response = api_client.get(INVOICES_URL, {'page': 1, 'limit': 2})

        assert response.status_code == 200
        assert [row['number'] for row in response.data['data']] == ['INV-0003', 'INV-0002']
        assert response.data['pagination'] == {'total': 3, 'page': 1, 'limit': 2, 'total_pages': 2}

    def test_list_filters(self, api_client, sale, product, supplier):
        post_invoice(invoice_type='purchase', items=[{'product': product, 'quantity': 5}], entity=supplier)

        response = api_client.get(INVOICES_URL, {'type': 'purchase'})
        assert [row['entity_name'] for row in response.data['data']] == ['Dental Supply Alger']

        response = api_client.get(INVOICES_URL, {'search': 'karim'})
        assert [row['number'] for row in response.data['data']] == [sale.number]

    def test_update_header(self, api_client, sale):
        response = api_client.patch(invoice_url(sale), {'paid_amount': '450.00'}, format='json')

        assert response.status_code == 200
        assert response.data['status'] == 'paid'
        assert response.data['items'][0]['quantity'] == 3

    def test_update_cannot_touch_items(self, api_client, sale, product):
        response = api_client.patch(invoice_url(sale), {
            'items': [{'product': str(product.pk), 'quantity': 10}],
        }, format='json')

        assert response.status_code == 400
        assert 'items' in response.data
        product.refresh_from_db()
        assert product.stock == 47

    def test_update_cannot_change_type(self, api_client, sale):
        response = api_client.patch(invoice_url(sale), {'type': 'purchase'}, format='json')

        assert response.status_code == 400
        sale.refresh_from_db()
        assert sale.type == Invoice.SALE

    def test_update_paid_cannot_exceed_total(self, api_client, sale):
        response = api_client.patch(invoice_url(sale), {'paid_amount': '500.00'}, format='json')
        assert response.status_code == 400

    def test_payments(self, api_client, sale):
        response = api_client.post(invoice_url(sale, 'payments'), {'amount': '200.00'}, format='json')
        assert response.status_code == 200
        assert response.data['paid_amount'] == Decimal('200.00')
        assert response.data['status'] == 'pending'

        response = api_client.post(invoice_url(sale, 'payments'), {'amount': '250.00'}, format='json')
        assert response.data['status'] == 'paid'
        assert response.data['balance_due'] == Decimal('0.00')

    def test_payment_limits(self, api_client, sale):
        response = api_client.post(invoice_url(sale, 'payments'), {'amount': '0'}, format='json')
        assert response.status_code == 400

        response = api_client.post(invoice_url(sale, 'payments'), {'amount': '450.01'}, format='json')
        assert response.status_code == 400
        sale.refresh_from_db()
        assert sale.paid_amount == Decimal('0.00')

    def test_delete_restores_stock(self, api_client, sale, product):
        response = api_client.delete(invoice_url(sale))

        assert response.status_code == 204
        assert not Invoice.objects.exists()
        product.refresh_from_db()
        assert product.stock == 50

        entry = StockEntry.objects.get(reference_id='DELETE-INV-0001')
        assert entry.quantity == 3
        assert entry.entry_type == 'return'

    def test_delete_purchase_restores_stock(self, api_client, product, supplier):
        purchase = post_invoice(invoice_type='purchase', items=[{'product': product, 'quantity': 8}], entity=supplier)

        api_client.delete(invoice_url(purchase))

        product.refresh_from_db()
        assert product.stock == 50
        assert StockEntry.objects.get(reference_id=f"DELETE-{purchase.number}").quantity == -8

    def test_next_number(self, api_client, sale):
        assert api_client.get(f"{INVOICES_URL}next-number/").data == {'number': 'INV-0002'}
        assert api_client.get(f"{INVOICES_URL}next-number/", {'prefix': 'POS'}).data == {'number': 'POS-0001'}


@pytest.mark.django_db
class TestPosCheckout:
    url = f"{INVOICES_URL}pos-checkout/"

    def test_checkout(self, api_client, product, composite, client_entity):
        response = api_client.post(self.url, {
            'entity': str(client_entity.pk),
            'cart': [
                {'product': str(product.pk), 'quantity': 2},
                {'product': str(composite.pk), 'quantity': 1},
                {'product': str(product.pk), 'quantity': 1},
            ],
        }, format='json')

        assert response.status_code == 201
        assert response.data['number'] == 'POS-0001'
        assert response.data['status'] == 'paid'
        assert response.data['total'] == Decimal('2950.00')
        assert response.data['paid_amount'] == Decimal('2950.00')
        assert len(response.data['items']) == 2

        product.refresh_from_db()
        composite.refresh_from_db()
        assert product.stock == 47
        assert composite.stock == 4

    def test_empty_cart(self, api_client, product, client_entity):
        response = api_client.post(self.url, {
            'entity': str(client_entity.pk),
            'cart': [{'product': str(product.pk), 'quantity': 0}],
        }, format='json')

        assert response.status_code == 400
        assert 'cart' in response.data

    def test_client_required(self, api_client, product, supplier):
        cart = [{'product': str(product.pk), 'quantity': 1}]

        response = api_client.post(self.url, {'entity': None, 'cart': cart}, format='json')
        assert response.status_code == 400

        response = api_client.post(self.url, {'entity': str(supplier.pk), 'cart': cart}, format='json')
        assert response.status_code == 400
        assert not Invoice.objects.exists()


@pytest.mark.django_db
class TestRecalculateInvoiceStatus:

    def test_fixes_stale_status(self, sale):
        Invoice.objects.filter(pk=sale.pk).update(paid_amount=sale.total)
        out = StringIO()

        call_command('recalculate_invoice_status', '--dry-run', stdout=out)
        sale.refresh_from_db()
        assert sale.status == Invoice.PENDING
        assert 'Would update: 1' in out.getvalue()

        call_command('recalculate_invoice_status', stdout=StringIO())
        sale.refresh_from_db()
        assert sale.status == Invoice.PAID
