import pytest
from rest_framework import status
from rest_framework.exceptions import ValidationError

from apps.api.utils import error_response


def test_error_response_maps_code_to_status():
    response = error_response("not_found", "Product not found", {"id": "3"})
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.data == {
        "error": {
            "code": "NOT_FOUND",
            "message": "Product not found",
            "status": 404,
            "details": {"id": "3"},
        }
    }


def test_error_response_unknown_code_defaults_to_bad_request():
    response = error_response("SOMETHING_ELSE", "Nope")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "details" not in response.data["error"]


def test_error_response_custom_status_and_hint():
    response = error_response(
        "TOO_MANY_REQUESTS",
        "Slow down",
        http_status=status.HTTP_429_TOO_MANY_REQUESTS,
        hint="Wait before retrying this request.",
        headers={"Retry-After": 30},
    )
    assert response.status_code == 429
    assert response.data["error"]["hint"] == "Wait before retrying this request."
    assert response["Retry-After"] == "30"


def test_error_response_normalizes_validation_error_details():
    response = error_response(
        "VALIDATION_ERROR", "Validation failed", ValidationError({"name": ["Required."]})
    )
    assert response.data["error"]["details"] == {"name": ["Required."]}


@pytest.mark.parametrize(
    "code,message,http_status",
    [("", "msg", None), ("CODE", " ", None), ("CODE", "msg", 99)],
)
def test_error_response_rejects_invalid_arguments(code, message, http_status):
    with pytest.raises(ValueError):
        error_response(code, message, http_status=http_status)
