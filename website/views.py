# website/views.py
from django.http import HttpResponse
from django.utils import timezone
from rest_framework.response import Response
from rest_framework.views import APIView
import logging

from inventory.models import Product
from sales.models import Invoice
from .exports import XLSX_CONTENT_TYPE, invoices_workbook, products_workbook, workbook_bytes
from .metrics import dashboard_metrics
from .services.insights_service import InsightsService

logger = logging.getLogger(__name__)


# ============================================
# DASHBOARD
# ============================================

class DashboardView(APIView):
    """Headline figures for the dashboard"""

    def get(self, request):
        return Response(dashboard_metrics())


class StockInsightsView(APIView):
    """
    Restocking advice from Gemini.

    Always answers 200; ``insights`` is null when the advice could not be
    produced (no API key, network failure, malformed answer).
    """

    def get(self, request):
        products = Product.objects.select_related('category').order_by('name')
        invoices = Invoice.objects.order_by('-date', '-created_at')
        insights = InsightsService(products, invoices).get_insights()
        return Response({'insights': insights})


# ============================================
# EXCEL EXPORTS
# ============================================

def _xlsx_response(wb, name):
    filename = f"{name}_{timezone.localdate().isoformat()}.xlsx"
    response = HttpResponse(workbook_bytes(wb), content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


class ProductsExportView(APIView):

    def get(self, request):
        logger.info(f"Products export requested by {request.user.username}")
        return _xlsx_response(products_workbook(), 'products')


class InvoicesExportView(APIView):

    def get(self, request):
        invoices = Invoice.objects.order_by('-date', '-created_at')

        invoice_type = request.query_params.get('type', None)
        if invoice_type and invoice_type != 'all':
            invoices = invoices.filter(type=invoice_type)

        logger.info(f"Invoices export requested by {request.user.username}")
        return _xlsx_response(invoices_workbook(invoices), 'invoices')
