from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
import logging

from dentastock.pagination import PageLimitPagination
from .models import CashTransaction
from .serializers import CashSummarySerializer, CashTransactionSerializer


logger = logging.getLogger(__name__)


class CashTransactionViewSet(mixins.CreateModelMixin,
                             mixins.RetrieveModelMixin,
                             mixins.DestroyModelMixin,
                             mixins.ListModelMixin,
                             viewsets.GenericViewSet):
    """
    API endpoint for the cash register.

    Transactions are never edited; a mistake is deleted and entered again.
    """
    queryset = CashTransaction.objects.all()
    serializer_class = CashTransactionSerializer
    pagination_class = PageLimitPagination

    def get_queryset(self):
        queryset = CashTransaction.objects.select_related('created_by').all()

        # Filter by type (income / expense)
        transaction_type = self.request.query_params.get('type', None)
        if transaction_type and transaction_type != 'all':
            queryset = queryset.filter(type=transaction_type)

        category = self.request.query_params.get('category', None)
        if category:
            queryset = queryset.filter(category__iexact=category)

        date_from = self.request.query_params.get('date_from', None)
        if date_from:
            queryset = queryset.filter(date__date__gte=date_from)

        date_to = self.request.query_params.get('date_to', None)
        if date_to:
            queryset = queryset.filter(date__date__lte=date_to)

        # Search by description or category
        search = self.request.query_params.get('search', None)
        if search:
            queryset = queryset.search(search.strip())

        return queryset.order_by('-date', '-created_at')

    @action(detail=False, methods=['get'])
    def summary(self, request):
        """Income, expenses and balance for the (filtered) register"""
        totals = self.get_queryset().summary()
        return Response(CashSummarySerializer(totals).data)
