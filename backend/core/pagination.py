import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """`?page=2&limit=20` pagination returning totals alongside the rows."""
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data, **extra):
        total = self.page.paginator.count
        limit = self.get_page_size(self.request)
        payload = {
            "results": data,
            "pagination": {
                "total": total,
                "page": self.page.number,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }
        payload.update(extra)
        return Response(payload)
