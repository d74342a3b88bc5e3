# sync/store.py
import logging
import uuid
from collections import OrderedDict

from .client import ApiError, OfflineError
from .queue import OfflineQueue

logger = logging.getLogger(__name__)

COLLECTIONS = ('categories', 'products', 'entities', 'invoices', 'cash')


def _money(value):
    return round(float(value or 0), 2)


def _invoice_status(total, paid_amount, requested=None):
    if requested == 'draft':
        return 'draft'
    return 'paid' if paid_amount >= total else 'pending'


class LocalStore:
    """
    Cached application state.

    Every mutation is sent to the API first and the cache is then
    refetched, so server state always wins. When the server cannot be
    reached the mutation is queued and applied to the cache instead.
    While older mutations are still queued, they are replayed first and
    a new mutation that cannot follow them goes to the back of the queue.
    An error answer from the server re-raises and leaves the cache alone.
    """

    def __init__(self, client, queue=None):
        self.client = client
        self.queue = queue if queue is not None else OfflineQueue()
        self.user = None
        self.online = True
        self.categories = []
        self.products = []
        self.entities = []
        self.invoices = []
        self.cash = []

    # ============================================
    # LOOKUPS
    # ============================================

    def _find(self, collection, pk):
        for row in getattr(self, collection):
            if row['id'] == pk:
                return row
        return None

    def product(self, pk):
        return self._find('products', pk)

    def entity(self, pk):
        return self._find('entities', pk)

    def invoice(self, pk):
        return self._find('invoices', pk)

    @property
    def pending(self):
        return len(self.queue)

    # ============================================
    # SESSION
    # ============================================

    def login(self, email, password):
        self.user = self.client.login(email, password)
        self.refresh()
        return self.user

    def restore_session(self):
        self.user = self.client.session_user()
        if self.user:
            self.refresh()
        return self.user

    def logout(self):
        try:
            self.client.logout()
        finally:
            self.user = None
            for collection in COLLECTIONS:
                setattr(self, collection, [])

    def refresh(self):
        """Refetch every collection; the cache is kept as is when offline."""
        try:
            fetched = {collection: self.client.list(collection) for collection in COLLECTIONS}
        except OfflineError:
            self.online = False
            logger.info("[STORE] Refresh skipped: server unreachable")
            return False

        for collection, rows in fetched.items():
            setattr(self, collection, rows)
        self.online = True
        return True

    def reconnect(self):
        """Replay queued mutations, then reload from the server."""
        report = self.queue.flush(self.client)
        if not report.stopped:
            self.refresh()
        return report

    # ============================================
    # MUTATION PLUMBING
    # ============================================

    def _queue_mutation(self, method, endpoint, payload, apply_offline):
        self.online = False
        self.queue.enqueue(method, endpoint, payload)
        apply_offline()
        return None

    def _mutate(self, method, endpoint, payload, apply_offline):
        if len(self.queue):
            report = self.queue.flush(self.client)
            if report.stopped or len(self.queue):
                logger.info(f"[STORE] {method} {endpoint} queued behind {len(self.queue)} pending mutation(s)")
                return self._queue_mutation(method, endpoint, payload, apply_offline)

        try:
            result = self.client.request(method, endpoint, payload)
        except OfflineError:
            return self._queue_mutation(method, endpoint, payload, apply_offline)

        self.online = True
        self.refresh()
        return result

    @staticmethod
    def _with_id(data):
        data = dict(data)
        if not data.get('id'):
            data['id'] = str(uuid.uuid4())
        return data

    def _replace(self, collection, pk, changes):
        row = self._find(collection, pk)
        if row is not None:
            row.update(changes)

    def _remove(self, collection, pk):
        setattr(self, collection, [row for row in getattr(self, collection) if row['id'] != pk])

    def _move_stock(self, product_id, delta):
        product = self.product(product_id)
        if product is not None:
            product['stock'] = product.get('stock', 0) + delta

    def _referenced_by_invoice(self, field, pk):
        for invoice in self.invoices:
            if field == 'entity' and invoice.get('entity') == pk:
                return invoice
            if field == 'product' and any(item.get('product') == pk for item in invoice.get('items', [])):
                return invoice
        return None

    # ============================================
    # CATEGORIES
    # ============================================

    def add_category(self, data):
        data = self._with_id(data)
        return self._mutate(
            'POST', self.client.endpoint('categories'), data,
            lambda: self.categories.append(dict(data)),
        )

    def update_category(self, pk, changes):
        return self._mutate(
            'PATCH', self.client.endpoint('categories', pk), changes,
            lambda: self._replace('categories', pk, changes),
        )

    def delete_category(self, pk):
        def apply_offline():
            self._remove('categories', pk)
            for product in self.products:
                if product.get('category') == pk:
                    product['category'] = None
                    product['category_name'] = None

        return self._mutate('DELETE', self.client.endpoint('categories', pk), None, apply_offline)

    # ============================================
    # PRODUCTS
    # ============================================

    def add_product(self, data):
        data = self._with_id(data)
        data.setdefault('stock', 0)
        data.setdefault('min_stock', 10)
        return self._mutate(
            'POST', self.client.endpoint('products'), data,
            lambda: self.products.append(dict(data)),
        )

    def update_product(self, pk, changes):
        return self._mutate(
            'PATCH', self.client.endpoint('products', pk), changes,
            lambda: self._replace('products', pk, changes),
        )

    def delete_product(self, pk):
        invoice = self._referenced_by_invoice('product', pk)
        if invoice is not None:
            raise ApiError(409, f"Product is used by invoice {invoice.get('number')} and cannot be deleted")
        return self._mutate(
            'DELETE', self.client.endpoint('products', pk), None,
            lambda: self._remove('products', pk),
        )

    # ============================================
    # ENTITIES
    # ============================================

    def add_entity(self, data):
        data = self._with_id(data)
        return self._mutate(
            'POST', self.client.endpoint('entities'), data,
            lambda: self.entities.append(dict(data)),
        )

    def update_entity(self, pk, changes):
        return self._mutate(
            'PATCH', self.client.endpoint('entities', pk), changes,
            lambda: self._replace('entities', pk, changes),
        )

    def delete_entity(self, pk):
        invoice = self._referenced_by_invoice('entity', pk)
        if invoice is not None:
            raise ApiError(409, f"Entity is used by invoice {invoice.get('number')} and cannot be deleted")
        return self._mutate(
            'DELETE', self.client.endpoint('entities', pk), None,
            lambda: self._remove('entities', pk),
        )

    # ============================================
    # INVOICES
    # ============================================

    def _local_invoice(self, data):
        """Invoice as the server would compute it, from cached products."""
        invoice_type = data['type']
        items = []
        for item in data['items']:
            product = self.product(item['product']) or {}
            unit_price = item.get('unit_price')
            if unit_price is None:
                unit_price = product.get('price' if invoice_type == 'sale' else 'cost', 0)
            cost = item.get('cost')
            if cost is None:
                cost = product.get('cost', 0)
            items.append({
                'id': item.get('id') or str(uuid.uuid4()),
                'product': item['product'],
                'product_name': item.get('product_name') or product.get('name', ''),
                'quantity': item['quantity'],
                'unit_price': _money(unit_price),
                'cost': _money(cost),
                'total': _money(_money(unit_price) * item['quantity']),
            })

        total = _money(sum(item['total'] for item in items))
        paid_amount = _money(data.get('paid_amount'))
        entity = self.entity(data.get('entity')) if data.get('entity') else None

        return {
            'id': data['id'],
            'number': data.get('number') or '',
            'date': data.get('date'),
            'type': invoice_type,
            'entity': data.get('entity'),
            'entity_name': data.get('entity_name') or (entity or {}).get('name', ''),
            'items': items,
            'subtotal': total,
            'total': total,
            'paid_amount': paid_amount,
            'status': _invoice_status(total, paid_amount, data.get('status')),
        }

    def _apply_invoice_offline(self, invoice):
        direction = -1 if invoice['type'] == 'sale' else 1
        for item in invoice['items']:
            self._move_stock(item['product'], direction * item['quantity'])
        self.invoices.insert(0, invoice)

    def add_invoice(self, data):
        data = self._with_id(data)
        return self._mutate(
            'POST', self.client.endpoint('invoices'), data,
            lambda: self._apply_invoice_offline(self._local_invoice(data)),
        )

    def update_invoice(self, pk, changes):
        def apply_offline():
            invoice = self.invoice(pk)
            if invoice is None:
                return
            invoice.update(changes)
            invoice['status'] = _invoice_status(
                invoice['total'], _money(invoice.get('paid_amount')), changes.get('status', invoice.get('status'))
            )

        return self._mutate('PATCH', self.client.endpoint('invoices', pk), changes, apply_offline)

    def delete_invoice(self, pk):
        def apply_offline():
            invoice = self.invoice(pk)
            if invoice is None:
                return
            direction = 1 if invoice['type'] == 'sale' else -1
            for item in invoice.get('items', []):
                self._move_stock(item['product'], direction * item['quantity'])
            self._remove('invoices', pk)

        return self._mutate('DELETE', self.client.endpoint('invoices', pk), None, apply_offline)

    def record_payment(self, pk, amount):
        invoice = self.invoice(pk)
        if invoice is not None:
            balance = _money(invoice['total']) - _money(invoice.get('paid_amount'))
            if amount <= 0 or amount > balance:
                raise ApiError(400, f"Payment must be between 0 and the balance due ({balance:.2f})")

        def apply_offline():
            if invoice is None:
                return
            invoice['paid_amount'] = _money(_money(invoice.get('paid_amount')) + amount)
            invoice['status'] = _invoice_status(invoice['total'], invoice['paid_amount'])

        return self._mutate(
            'POST', self.client.endpoint('invoices', pk, 'payments'), {'amount': amount}, apply_offline
        )

    def pos_checkout(self, entity_id, cart):
        """Sell the cart to a client; duplicate products are merged."""
        merged = OrderedDict()
        for line in cart:
            if line['quantity'] <= 0:
                continue
            merged[line['product']] = merged.get(line['product'], 0) + line['quantity']
        if not merged:
            raise ApiError(400, 'The cart is empty')
        if entity_id is None:
            raise ApiError(400, 'Select a client before checkout')

        invoice_id = str(uuid.uuid4())
        lines = [{'product': product, 'quantity': quantity} for product, quantity in merged.items()]
        payload = {'id': invoice_id, 'entity': entity_id, 'cart': lines}

        def apply_offline():
            invoice = self._local_invoice({
                'id': invoice_id,
                'type': 'sale',
                'entity': entity_id,
                'items': lines,
            })
            invoice['paid_amount'] = invoice['total']
            invoice['status'] = 'paid'
            self._apply_invoice_offline(invoice)

        return self._mutate(
            'POST', self.client.endpoint('invoices', action='pos-checkout'), payload, apply_offline
        )

    # ============================================
    # CASH
    # ============================================

    def add_cash_transaction(self, data):
        data = self._with_id(data)
        return self._mutate(
            'POST', self.client.endpoint('cash'), data,
            lambda: self.cash.insert(0, dict(data)),
        )

    def delete_cash_transaction(self, pk):
        return self._mutate(
            'DELETE', self.client.endpoint('cash', pk), None,
            lambda: self._remove('cash', pk),
        )

    def cash_summary(self):
        income = sum(_money(row['amount']) for row in self.cash if row['type'] == 'income')
        expenses = sum(_money(row['amount']) for row in self.cash if row['type'] == 'expense')
        return {'income': _money(income), 'expenses': _money(expenses), 'balance': _money(income - expenses)}
