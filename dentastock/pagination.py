import math

from rest_framework.pagination import BasePagination
from rest_framework.response import Response


def _positive_int(value, default=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, number)


class PageLimitPagination(BasePagination):
    """
    ``?page=&limit=`` pagination.

    Without ``limit`` every row is returned as a single page. The
    response always has the ``{"data": [...], "pagination": {...}}`` shape.
    """

    page_query_param = 'page'
    limit_query_param = 'limit'

    def paginate_queryset(self, queryset, request, view=None):
        self.total = queryset.count()
        self.page = _positive_int(request.query_params.get(self.page_query_param), 1)
        self.limit = _positive_int(request.query_params.get(self.limit_query_param))

        if self.limit is None:
            return list(queryset)

        offset = (self.page - 1) * self.limit
        return list(queryset[offset:offset + self.limit])

    def get_total_pages(self):
        if self.limit:
            return math.ceil(self.total / self.limit)
        return 1 if self.total else 0

    def get_paginated_response(self, data):
        return Response({
            'data': data,
            'pagination': {
                'total': self.total,
                'page': self.page,
                'limit': self.limit,
                'total_pages': self.get_total_pages(),
            },
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                'data': schema,
                'pagination': {
                    'type': 'object',
                    'properties': {
                        'total': {'type': 'integer'},
                        'page': {'type': 'integer'},
                        'limit': {'type': 'integer', 'nullable': True},
                        'total_pages': {'type': 'integer'},
                    },
                },
            },
        }
