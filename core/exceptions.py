from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("eventhub.api")


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        errors = response.data
        # Single-message rejections also expose which rule failed
        if isinstance(exc, APIException) and isinstance(errors, dict) and set(errors) == {"detail"}:
            errors = {"detail": errors["detail"], "code": exc.get_codes()}

        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": errors,
            },
            status=response.status_code,
            headers=_retry_headers(response),
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _retry_headers(response):
    # Keep throttling hints (Retry-After) on wrapped responses
    retry_after = response.get("Retry-After")
    return {"Retry-After": retry_after} if retry_after else None
