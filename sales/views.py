from django.db import transaction
from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
import logging

from dentastock.pagination import PageLimitPagination
from .models import Invoice
from .serializers import (
    InvoiceSerializer,
    InvoiceUpdateSerializer,
    PaymentSerializer,
    PosCheckoutSerializer,
)
from .services import invoice_service


logger = logging.getLogger(__name__)

# ====================================
# REST API VIEWSETS
# ====================================

class InvoiceViewSet(viewsets.ModelViewSet):
    """
    API endpoint for sale and purchase invoices.

    Posting an invoice moves stock; deleting one moves it back.
    """
    queryset = Invoice.objects.all()
    serializer_class = InvoiceSerializer
    pagination_class = PageLimitPagination

    def get_queryset(self):
        """Filter invoices based on query parameters"""
        queryset = (
            Invoice.objects
            .select_related('entity', 'created_by')
            .prefetch_related('items')
        )

        invoice_type = self.request.query_params.get('type', None)
        if invoice_type and invoice_type != 'all':
            queryset = queryset.filter(type=invoice_type)

        invoice_status = self.request.query_params.get('status', None)
        if invoice_status and invoice_status != 'all':
            queryset = queryset.filter(status=invoice_status)

        entity_id = self.request.query_params.get('entity', None)
        if entity_id:
            queryset = queryset.filter(entity_id=entity_id)

        date_from = self.request.query_params.get('date_from', None)
        if date_from:
            queryset = queryset.filter(date__date__gte=date_from)

        date_to = self.request.query_params.get('date_to', None)
        if date_to:
            queryset = queryset.filter(date__date__lte=date_to)

        # Search by number or client/supplier name
        search = self.request.query_params.get('search', None)
        if search:
            search = search.strip()
            queryset = queryset.filter(
                Q(number__icontains=search) |
                Q(entity_name__icontains=search)
            )

        return queryset.order_by('-date', '-created_at')

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = InvoiceUpdateSerializer(
            instance, data=request.data, partial=partial, context=self.get_serializer_context()
        )
        serializer.is_valid(raise_exception=True)
        invoice = serializer.save()
        return Response(self.get_serializer(invoice).data)

    def perform_destroy(self, instance):
        # Stock is restored by the pre_delete signal inside this transaction
        with transaction.atomic():
            number = instance.number
            instance.delete()
        logger.info(f"[INVOICE DELETED] {number} by {self.request.user}")

    @action(detail=True, methods=['post'])
    def payments(self, request, pk=None):
        """Record a payment against the balance due"""
        invoice = self.get_object()
        serializer = PaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invoice = invoice_service.record_payment(
            invoice, serializer.validated_data['amount'], user=request.user
        )
        invoice = self.get_queryset().get(pk=invoice.pk)
        return Response(self.get_serializer(invoice).data)

    @action(detail=False, methods=['post'], url_path='pos-checkout')
    def pos_checkout(self, request):
        """Point-of-sale checkout: fully paid sale to a client"""
        serializer = PosCheckoutSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        invoice = serializer.save()

        invoice = self.get_queryset().get(pk=invoice.pk)
        return Response(self.get_serializer(invoice).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'], url_path='next-number')
    def next_number(self, request):
        prefix = request.query_params.get('prefix') or None
        return Response({'number': invoice_service.next_invoice_number(prefix)})
