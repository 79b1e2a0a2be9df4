"""
Correlation id middleware and logging filter.

Every request gets an id, taken from the ``X-Correlation-ID`` header when the
client sends one and generated otherwise. The id is kept in a context variable
so log records and error responses can carry it without threading it through
service calls.
"""

import contextvars
import logging
import uuid

from django.utils.deprecation import MiddlewareMixin

CORRELATION_ID_CTX = contextvars.ContextVar("correlation_id", default="-")


def get_correlation_id():
    return CORRELATION_ID_CTX.get()


class CorrelationIdMiddleware(MiddlewareMixin):
    HEADER = "HTTP_X_CORRELATION_ID"
    RESPONSE_HEADER = "X-Correlation-ID"

    def process_request(self, request):
        correlation_id = request.META.get(self.HEADER) or str(uuid.uuid4())
        request.correlation_id = correlation_id
        request._correlation_token = CORRELATION_ID_CTX.set(correlation_id)

    def process_response(self, request, response):
        correlation_id = getattr(request, "correlation_id", None)
        if correlation_id:
            response[self.RESPONSE_HEADER] = correlation_id
        token = getattr(request, "_correlation_token", None)
        if token is not None:
            CORRELATION_ID_CTX.reset(token)
        return response


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation id to every log record."""

    def filter(self, record):
        record.correlation_id = CORRELATION_ID_CTX.get()
        return True
