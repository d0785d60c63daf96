# invo_backend/pagination.py
"""
Cursor pagination, newest first.

The cursor is the id of the first row of the next page. A page fetches
limit + 1 rows; the extra row, if any, becomes ``nextCursor``.

By default rows are ordered by id. Subclasses may set ``order_field``
(e.g. a date column); ties on that field fall back to id, and the cursor
row's own value decides where the next page starts.

Response:
    {"data": [...], "nextCursor": "123" | null, "totalCount": 57}
"""

from django.db.models import Q
from rest_framework.pagination import BasePagination
from rest_framework.response import Response

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50


class IdCursorPagination(BasePagination):
    page_size = DEFAULT_PAGE_SIZE
    max_page_size = MAX_PAGE_SIZE
    cursor_query_param = "cursor"
    limit_query_param = "limit"
    order_field = None

    def get_limit(self, request) -> int:
        try:
            limit = int(request.query_params.get(self.limit_query_param, self.page_size))
        except (TypeError, ValueError):
            return self.page_size
        return min(max(limit, 1), self.max_page_size)

    def get_cursor(self, request):
        cursor = request.query_params.get(self.cursor_query_param)
        if cursor and str(cursor).isdigit():
            return int(cursor)
        return None

    def _after_cursor(self, queryset, cursor):
        if self.order_field is None:
            return queryset.filter(id__lte=cursor)

        anchor = queryset.filter(id=cursor).values(self.order_field).first()
        if anchor is None:
            return queryset.none()
        value = anchor[self.order_field]
        return queryset.filter(
            Q(**{f"{self.order_field}__lt": value})
            | Q(**{self.order_field: value, "id__lte": cursor})
        )

    def paginate_queryset(self, queryset, request, view=None):
        self.total_count = queryset.count()
        limit = self.get_limit(request)
        cursor = self.get_cursor(request)

        if self.order_field is None:
            page_qs = queryset.order_by("-id")
        else:
            page_qs = queryset.order_by(f"-{self.order_field}", "-id")
        if cursor is not None:
            page_qs = self._after_cursor(page_qs, cursor)

        rows = list(page_qs[:limit + 1])
        self.next_cursor = None
        if len(rows) > limit:
            self.next_cursor = str(rows.pop().id)
        return rows

    def get_paginated_response(self, data):
        return Response({
            "data": data,
            "nextCursor": self.next_cursor,
            "totalCount": self.total_count,
        })
