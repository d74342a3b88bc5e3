from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
import logging

from dentastock.exceptions import ResourceInUse
from .models import Category, Product, StockEntry
from .serializers import (
    CategorySerializer,
    ProductSerializer,
    StockAdjustmentSerializer,
    StockEntrySerializer,
)


logger = logging.getLogger(__name__)

# ====================================
# REST API VIEWSETS
# ====================================

class CategoryViewSet(viewsets.ModelViewSet):
    """API endpoint for categories"""
    queryset = Category.objects.all()
    serializer_class = CategorySerializer

    def perform_destroy(self, instance):
        # Products keep existing without a category (SET_NULL)
        logger.info(f"Category deleted: {instance.name} by {self.request.user}")
        instance.delete()


class ProductViewSet(viewsets.ModelViewSet):
    """API endpoint for products"""
    queryset = Product.objects.all()
    serializer_class = ProductSerializer

    def get_queryset(self):
        """Filter products based on query parameters"""
        queryset = Product.objects.select_related('category').all()

        # Filter by category
        category_id = self.request.query_params.get('category', None)
        if category_id and category_id != 'all':
            queryset = queryset.filter(category_id=category_id)

        # Filter by stock status (out / low / in)
        stock = self.request.query_params.get('stock', None)
        if stock and stock != 'all':
            queryset = queryset.with_stock_status(stock)

        # Search by name or SKU
        search = self.request.query_params.get('search', None)
        if search:
            queryset = queryset.search(search.strip())

        return queryset

    def perform_destroy(self, instance):
        if instance.is_in_use:
            raise ResourceInUse(
                f"{instance.name} appears on existing invoices and cannot be deleted."
            )
        logger.info(f"Product deleted: {instance.sku} - {instance.name} by {self.request.user}")
        instance.delete()

    @action(detail=False, methods=['get'])
    def lookup(self, request):
        """
        Find a product by exact SKU (case-insensitive).
        Used by the POS barcode scanner.
        """
        sku = request.query_params.get('sku', '').strip()
        if not sku:
            raise ValidationError({'sku': 'SKU is required'})

        product = get_object_or_404(Product.objects.select_related('category'), sku__iexact=sku)
        return Response(self.get_serializer(product).data)

    @action(detail=True, methods=['post'], url_path='adjust-stock')
    def adjust_stock(self, request, pk=None):
        product = self.get_object()
        serializer = StockAdjustmentSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        entry = serializer.save(product)

        return Response({
            'product': self.get_serializer(product).data,
            'entry': StockEntrySerializer(entry).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        products = Product.objects.select_related('category').low_stock().order_by('stock', 'name')
        return Response(self.get_serializer(products, many=True).data)

    @action(detail=False, methods=['get'])
    def expiring(self, request):
        days = request.query_params.get('days')
        try:
            days = int(days) if days is not None else None
        except ValueError:
            raise ValidationError({'days': 'A whole number of days is required'})

        products = Product.objects.select_related('category').expiring(days).order_by('expiry_date')
        return Response(self.get_serializer(products, many=True).data)


class StockEntryViewSet(viewsets.ReadOnlyModelViewSet):
    """API endpoint for the stock movement audit trail"""
    queryset = StockEntry.objects.all()
    serializer_class = StockEntrySerializer

    def get_queryset(self):
        """Filter stock entries by product, entry type or reference"""
        queryset = StockEntry.objects.select_related('product', 'created_by').all()

        # Filter by product
        product_id = self.request.query_params.get('product', None)
        if product_id:
            queryset = queryset.filter(product_id=product_id)

        # Filter by entry type
        entry_type = self.request.query_params.get('entry_type', None)
        if entry_type:
            queryset = queryset.filter(entry_type=entry_type)

        reference = self.request.query_params.get('reference', None)
        if reference:
            queryset = queryset.filter(Q(reference_id__iexact=reference) | Q(reference_id__iendswith=f"-{reference}"))

        return queryset
