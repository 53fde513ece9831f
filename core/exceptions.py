from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.exceptions import NotAuthenticated, AuthenticationFailed
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("cos")


class DomainError(Exception):
    """
    Base class for business-rule failures raised from service code.

    Rendered by `custom_exception_handler` as the flat wire format
    ``{"error": "<message>", "code": "<code>"}`` that the web client
    shows to the user verbatim.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed."
    code = "error"

    def __init__(self, message=None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_payload(self):
        payload = {"error": self.message, "code": self.code}
        payload.update(self.extra)
        return payload


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    if isinstance(exc, DomainError):
        return Response(exc.as_payload(), status=exc.status_code)

    if isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        response = drf_exception_handler(exc, context)
        return Response(
            {"error": "Unauthorized", "code": "unauthorized"},
            status=status.HTTP_401_UNAUTHORIZED,
            headers={
                key: value
                for key, value in (response.items() if response is not None else [])
                if key == "WWW-Authenticate"
            },
        )

    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": response.data,
            },
            status=response.status_code,
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
