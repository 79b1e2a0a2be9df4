from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response

from core_backend.config import app_settings


class HasMoreLimitOffsetPagination(LimitOffsetPagination):
    """
    limit/offset pagination that answers with the list under ``results`` plus
    ``total`` and ``hasMore``. Limits above the configured maximum are clamped.
    """

    results_key = "results"

    def get_limit(self, request):
        self.default_limit = app_settings.default_page_size
        self.max_limit = app_settings.max_page_size
        return super().get_limit(request)

    def get_paginated_response(self, data):
        return Response(
            {
                self.results_key: data,
                "total": self.count,
                "hasMore": self.offset + len(data) < self.count,
            }
        )

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "required": [self.results_key, "total", "hasMore"],
            "properties": {
                self.results_key: schema,
                "total": {"type": "integer"},
                "hasMore": {"type": "boolean"},
            },
        }
