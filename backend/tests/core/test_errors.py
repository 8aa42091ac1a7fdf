"""Error Hierarchy: status codes, retryable flag and the REST envelope."""

from app.core.errors import (
    ConflictError, DatabaseError, ErrorContext, ForbiddenError, GatewayError,
    InvalidStateError, MarketplaceError, NotAvailableError, NotFoundError,
    PaymentFailedError, ValidationError,
)


def test_domain_errors_map_to_http_status():
    assert ValidationError("bad", field="budget").http_status == 400
    assert ForbiddenError("no").http_status == 403
    assert NotFoundError("Job", "abc").http_status == 404
    assert NotAvailableError().http_status == 409
    assert InvalidStateError("nope", "open").http_status == 409
    assert ConflictError("dup").http_status == 409
    assert PaymentFailedError("declined").http_status == 402
    assert GatewayError("timeout", "transfer").http_status == 502
    assert DatabaseError("down", "query").http_status == 503


def test_all_errors_share_base():
    assert isinstance(ConflictError("dup"), MarketplaceError)
    assert isinstance(GatewayError("x", "refund"), MarketplaceError)


def test_gateway_error_is_retryable_by_default():
    assert GatewayError("timeout", "transfer").retryable is True
    assert GatewayError("auth", "transfer", retryable=False).retryable is False


def test_terminal_errors_are_not_retryable():
    assert ForbiddenError("no").retryable is False
    assert ConflictError("dup").retryable is False


def test_to_response_envelope():
    err = InvalidStateError(
        "Job cannot be completed", "open", ErrorContext(job_id="j-1"),
    )
    body = err.to_response()["error"]
    assert body["code"] == "INVALID_STATE"
    assert body["category"] == "business_rule"
    assert body["retryable"] is False
    assert body["context"]["job_id"] == "j-1"


def test_validation_error_response_names_field():
    body = ValidationError("bad coordinates", field="location").to_response()["error"]
    assert body["field"] == "location"
    assert body["code"] == "VALIDATION_ERROR"


def test_not_found_message_names_resource():
    err = NotFoundError("Payment", "p-1")
    assert "Payment" in err.message
    assert "p-1" in err.message
