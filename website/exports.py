"""Excel workbooks for the accountant."""

import io

import openpyxl
from django.conf import settings
from openpyxl.styles import Alignment, Font

from inventory.models import Product
from sales.models import Invoice

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _write_headers(ws, headers, row=1):
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal='center')


def products_workbook(products=None):
    """Stock sheet: one row per product"""
    if products is None:
        products = Product.objects.select_related('category').order_by('name')

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Products"

    _write_headers(ws, [
        'SKU', 'Name', 'Category', 'Stock', 'Min Stock', 'Status',
        f'Price ({settings.DENTASTOCK_CURRENCY})', f'Cost ({settings.DENTASTOCK_CURRENCY})',
        f'Stock Value ({settings.DENTASTOCK_CURRENCY})', 'Expiry Date',
    ])

    for row, product in enumerate(products, 2):
        ws.cell(row=row, column=1, value=product.sku)
        ws.cell(row=row, column=2, value=product.name)
        ws.cell(row=row, column=3, value=product.category.name if product.category else '')
        ws.cell(row=row, column=4, value=product.stock)
        ws.cell(row=row, column=5, value=product.min_stock)
        ws.cell(row=row, column=6, value=product.stock_status)
        ws.cell(row=row, column=7, value=float(product.price))
        ws.cell(row=row, column=8, value=float(product.cost))
        ws.cell(row=row, column=9, value=float(product.inventory_value))
        ws.cell(row=row, column=10, value=product.expiry_date)

    return wb


def invoices_workbook(invoices=None):
    """Invoice sheet with a totals row per invoice type"""
    if invoices is None:
        invoices = Invoice.objects.order_by('-date')

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Invoices"

    _write_headers(ws, [
        'Invoice Number', 'Date', 'Type', 'Client / Supplier',
        f'Total ({settings.DENTASTOCK_CURRENCY})', f'Paid ({settings.DENTASTOCK_CURRENCY})',
        f'Balance ({settings.DENTASTOCK_CURRENCY})', 'Status',
    ])

    totals = {Invoice.SALE: 0.0, Invoice.PURCHASE: 0.0}
    row = 1
    for row, invoice in enumerate(invoices, 2):
        ws.cell(row=row, column=1, value=invoice.number)
        # Excel has no timezone support
        ws.cell(row=row, column=2, value=invoice.date.replace(tzinfo=None))
        ws.cell(row=row, column=3, value=invoice.get_type_display())
        ws.cell(row=row, column=4, value=invoice.entity_name)
        ws.cell(row=row, column=5, value=float(invoice.total))
        ws.cell(row=row, column=6, value=float(invoice.paid_amount))
        ws.cell(row=row, column=7, value=float(invoice.balance_due))
        ws.cell(row=row, column=8, value=invoice.status)
        totals[invoice.type] += float(invoice.total)

    summary_row = row + 2
    for offset, (label, amount) in enumerate([
        ("Total sales:", totals[Invoice.SALE]),
        ("Total purchases:", totals[Invoice.PURCHASE]),
    ]):
        ws.cell(row=summary_row + offset, column=4, value=label).font = Font(bold=True)
        ws.cell(row=summary_row + offset, column=5, value=amount).font = Font(bold=True)

    return wb


def workbook_bytes(wb):
    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer.getvalue()
