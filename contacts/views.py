from rest_framework import viewsets
import logging

from dentastock.exceptions import ResourceInUse
from .models import Entity
from .serializers import EntitySerializer


logger = logging.getLogger(__name__)


class EntityViewSet(viewsets.ModelViewSet):
    """API endpoint for clients and suppliers"""
    queryset = Entity.objects.all()
    serializer_class = EntitySerializer

    def get_queryset(self):
        queryset = Entity.objects.all()

        # Filter by type (client / supplier)
        entity_type = self.request.query_params.get('type', None)
        if entity_type and entity_type != 'all':
            queryset = queryset.filter(type=entity_type)

        # Search by name, email or phone
        search = self.request.query_params.get('search', None)
        if search:
            queryset = queryset.search(search.strip())

        return queryset

    def perform_destroy(self, instance):
        if instance.is_in_use:
            raise ResourceInUse(
                f"{instance.name} has invoices and cannot be deleted."
            )
        instance.delete()
