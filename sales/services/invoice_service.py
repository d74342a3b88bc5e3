"""
Invoice posting.

Every stock movement caused by an invoice goes through here so that the
invoice header, its items and the product stock change commit together or
not at all.
"""

import logging
import re
from collections import OrderedDict
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from contacts.models import Entity
from sales.models import Invoice, InvoiceItem

logger = logging.getLogger(__name__)

HEADER_FIELDS = ('number', 'date', 'entity', 'entity_name', 'paid_amount', 'status')


def _user_or_none(user):
    return user if user is not None and user.is_authenticated else None


def next_invoice_number(prefix=None):
    """Next free ``<PREFIX>-0001`` style number for the given prefix."""
    prefix = prefix or settings.DENTASTOCK_INVOICE_PREFIX
    digits = settings.DENTASTOCK_INVOICE_NUMBER_DIGITS
    pattern = re.compile(rf'^{re.escape(prefix)}-(\d+)$')

    highest = 0
    for number in Invoice.objects.filter(number__startswith=f"{prefix}-").values_list('number', flat=True):
        match = pattern.match(number)
        if match:
            highest = max(highest, int(match.group(1)))

    return f"{prefix}-{highest + 1:0{digits}d}"


def expected_entity_type(invoice_type):
    return Entity.CLIENT if invoice_type == Invoice.SALE else Entity.SUPPLIER


def check_entity(invoice_type, entity):
    if entity is None:
        return
    expected = expected_entity_type(invoice_type)
    if entity.type != expected:
        raise ValidationError({
            'entity': f"A {invoice_type} invoice needs a {expected}, "
                      f"{entity.name} is a {entity.type}"
        })


def _build_line(invoice_type, item):
    product = item['product']
    quantity = item['quantity']

    unit_price = item.get('unit_price')
    if unit_price is None:
        unit_price = product.price if invoice_type == Invoice.SALE else product.cost

    cost = item.get('cost')
    if cost is None:
        cost = product.cost

    return {
        'id': item.get('id'),
        'product': product,
        'product_name': item.get('product_name') or product.name,
        'quantity': quantity,
        'unit_price': unit_price,
        'cost': cost,
        'total': unit_price * quantity,
    }


def post_invoice(*, invoice_type, items, user=None, entity=None, entity_name='', number=None,
                 date=None, paid_amount=Decimal('0.00'), status=None, invoice_id=None,
                 prefix=None, fully_paid=False):
    """
    Create an invoice with its items and move stock for each item.

    Sales take stock out, purchases bring it in. Totals are always
    computed here from the lines. Raises ValidationError (nothing is
    written) when the items are empty, the entity does not match the
    invoice type, the paid amount is above the total or a stock change
    is refused.
    """
    if invoice_type not in (Invoice.SALE, Invoice.PURCHASE):
        raise ValidationError({'type': f"Unknown invoice type: {invoice_type}"})
    if not items:
        raise ValidationError({'items': 'An invoice needs at least one item'})

    check_entity(invoice_type, entity)
    if entity is not None and not entity_name:
        entity_name = entity.name
    if not entity_name:
        raise ValidationError({'entity_name': 'A client or supplier is required'})

    lines = [_build_line(invoice_type, item) for item in items]
    subtotal = sum((line['total'] for line in lines), Decimal('0.00'))
    total = subtotal
    if fully_paid:
        paid_amount = total
    if paid_amount > total:
        raise ValidationError({'paid_amount': f"Paid amount cannot exceed the total ({total})"})

    try:
        with transaction.atomic():
            invoice = Invoice(
                number=number or next_invoice_number(prefix),
                type=invoice_type,
                entity=entity,
                entity_name=entity_name,
                subtotal=subtotal,
                total=total,
                paid_amount=paid_amount,
                status=Invoice.resolve_status(total, paid_amount, status),
                created_by=_user_or_none(user),
            )
            if invoice_id:
                invoice.id = invoice_id
            if date:
                invoice.date = date
            invoice.save(force_insert=True)

            direction = invoice.stock_direction
            for line in lines:
                item = InvoiceItem(invoice=invoice, **{k: v for k, v in line.items() if k != 'id'})
                if line['id']:
                    item.id = line['id']
                item.save(force_insert=True)

                line['product'].adjust_stock(
                    direction * line['quantity'],
                    entry_type=invoice_type,
                    unit_price=line['unit_price'],
                    reference_id=invoice.number,
                    notes=f"{invoice.get_type_display()} invoice {invoice.number}",
                    user=user,
                )
    except IntegrityError as e:
        logger.warning(f"[INVOICE] Posting rejected for {number or 'new invoice'}: {e}")
        raise ValidationError({'number': 'An invoice with this number or id already exists'})

    logger.info(
        f"[INVOICE POSTED] {invoice.number} | Type: {invoice.type} | "
        f"Entity: {invoice.entity_name} | Items: {len(lines)} | "
        f"Total: {invoice.total} {settings.DENTASTOCK_CURRENCY} | "
        f"Paid: {invoice.paid_amount} | Status: {invoice.status} | "
        f"User: {invoice.created_by.username if invoice.created_by else 'System'}"
    )
    return invoice


def update_invoice(invoice, changes, user=None):
    """
    Header-only update. The invoice type and its items are fixed once
    posted since stock has already moved for them.
    """
    unknown = set(changes) - set(HEADER_FIELDS)
    if unknown:
        raise ValidationError({field: 'This field cannot be changed after posting' for field in sorted(unknown)})

    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)

        if 'entity' in changes:
            check_entity(invoice.type, changes['entity'])
            if changes['entity'] is not None and not changes.get('entity_name'):
                changes = dict(changes, entity_name=changes['entity'].name)

        for field, value in changes.items():
            if field != 'status':
                setattr(invoice, field, value)

        if invoice.paid_amount > invoice.total:
            raise ValidationError({'paid_amount': f"Paid amount cannot exceed the total ({invoice.total})"})

        requested = changes.get('status', invoice.status)
        invoice.status = Invoice.resolve_status(invoice.total, invoice.paid_amount, requested)
        invoice.save()

    logger.info(
        f"[INVOICE UPDATED] {invoice.number} | Fields: {', '.join(sorted(changes)) or 'none'} | "
        f"Status: {invoice.status} | User: {user if user is not None else 'System'}"
    )
    return invoice


def record_payment(invoice, amount, user=None):
    """Add a payment to an invoice; the amount must not exceed the balance due."""
    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)

        if amount <= 0:
            raise ValidationError({'amount': 'Payment amount must be positive'})
        if amount > invoice.balance_due:
            raise ValidationError({
                'amount': f"Payment exceeds the balance due ({invoice.balance_due})"
            })

        invoice.paid_amount += amount
        invoice.status = Invoice.resolve_status(invoice.total, invoice.paid_amount)
        invoice.save(update_fields=['paid_amount', 'status', 'updated_at'])

    logger.info(
        f"[PAYMENT] {invoice.number} | Amount: {amount} {settings.DENTASTOCK_CURRENCY} | "
        f"Paid: {invoice.paid_amount}/{invoice.total} | Status: {invoice.status} | "
        f"User: {user if user is not None else 'System'}"
    )
    return invoice


def merge_cart(cart):
    """Collapse duplicate products and drop lines without a positive quantity."""
    merged = OrderedDict()
    for line in cart:
        quantity = line['quantity']
        if quantity <= 0:
            continue
        product = line['product']
        if product.pk in merged:
            merged[product.pk]['quantity'] += quantity
        else:
            merged[product.pk] = {'product': product, 'quantity': quantity}
    return list(merged.values())


def pos_checkout(entity, cart, user=None, invoice_id=None):
    """
    Point-of-sale checkout: a sale to a client, priced from the catalogue
    and settled in full.
    """
    if entity is None:
        raise ValidationError({'entity': 'Select a client before checkout'})
    if entity.type != Entity.CLIENT:
        raise ValidationError({'entity': f"{entity.name} is not a client"})

    items = merge_cart(cart)
    if not items:
        raise ValidationError({'cart': 'The cart is empty'})

    return post_invoice(
        invoice_type=Invoice.SALE,
        items=items,
        user=user,
        entity=entity,
        invoice_id=invoice_id,
        prefix=settings.DENTASTOCK_POS_PREFIX,
        fully_paid=True,
    )


def reverse_invoice_stock(invoice, user=None):
    """Undo the stock movements of an invoice that is about to be deleted."""
    reference = f"DELETE-{invoice.number}"
    with transaction.atomic():
        for item in invoice.items.select_related('product'):
            if item.product is None:
                continue
            item.product.adjust_stock(
                -invoice.stock_direction * item.quantity,
                entry_type='return' if invoice.is_sale else 'adjustment',
                unit_price=item.unit_price,
                reference_id=reference,
                notes=f"Stock restored from deleted invoice {invoice.number}",
                user=user,
            )

    logger.info(f"[INVOICE DELETE - RESTORE] {invoice.number} | Reference: {reference}")
