from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import MethodNotAllowed, ParseError, Throttled, ValidationError
from rest_framework.test import APIRequestFactory

from apps.api.exceptions import ApplicationError, global_exception_handler
from apps.common.persistence import IntegrityViolation

factory = APIRequestFactory()


class DummyView:
    pass


def _context(request):
    return {"request": request, "view": DummyView()}


def test_application_error_returns_structured_response():
    request = factory.post("/api/products")
    exc = ApplicationError(
        "INTEGRITY_ERROR",
        "Product violates a data integrity constraint",
        status_code=status.HTTP_409_CONFLICT,
        details={"categoryId": 42},
        hint="Check that referenced records exist.",
    )
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_409_CONFLICT
    assert payload["code"] == "INTEGRITY_ERROR"
    assert payload["status"] == 409
    assert payload["details"] == {"categoryId": 42}
    assert payload["hint"] == "Check that referenced records exist."


def test_application_error_without_status_uses_code_mapping():
    request = factory.get("/api/products/1")
    response = global_exception_handler(
        ApplicationError("NOT_FOUND", "Product not found"), _context(request)
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_validation_error_preserves_details():
    request = factory.post("/api/products", data={})
    exc = ValidationError({"name": ["This field is required."]})
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["message"] == "Validation failed"
    assert payload["details"] == {"name": ["This field is required."]}


def test_django_validation_error_is_converted():
    request = factory.post("/api/categories")
    exc = DjangoValidationError({"name": ["Too long."]})
    response = global_exception_handler(exc, _context(request))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["error"]["details"] == {"name": ["Too long."]}


def test_parse_error_is_validation_error():
    request = factory.post("/api/products")
    response = global_exception_handler(ParseError("JSON parse error"), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["message"] == "JSON parse error"


def test_http404_maps_to_not_found():
    request = factory.get("/api/products/5")
    response = global_exception_handler(Http404(), _context(request))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.data["error"]["code"] == "NOT_FOUND"


def test_method_not_allowed():
    request = factory.patch("/api/products/5")
    response = global_exception_handler(MethodNotAllowed("PATCH"), _context(request))
    assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert response.data["error"]["code"] == "METHOD_NOT_ALLOWED"


def test_throttled_forwards_retry_after():
    request = factory.get("/api/products")
    response = global_exception_handler(Throttled(wait=12), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert payload["code"] == "TOO_MANY_REQUESTS"
    assert payload["details"] == {"retryAfter": 12}
    assert response["Retry-After"] == "12"


def test_untranslated_persistence_error_hides_store_detail():
    request = factory.post("/api/products")
    response = global_exception_handler(
        IntegrityViolation("FOREIGN KEY constraint failed"), _context(request)
    )
    payload = response.data["error"]
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert payload["code"] == "SERVER_ERROR"
    assert payload["message"] == "Something went wrong"
    assert "details" not in payload


def test_unhandled_exception_returns_generic_message():
    request = factory.get("/api/products")
    response = global_exception_handler(RuntimeError("boom"), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert payload["code"] == "SERVER_ERROR"
    assert payload["message"] == "Something went wrong"
    assert "details" not in payload
