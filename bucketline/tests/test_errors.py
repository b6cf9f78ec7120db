"""
Unit Tests: Error Taxonomy

Tests:
    - Messages and context of each error constructor
    - Provider error code extraction
    - Serialization
"""

from botocore.exceptions import ClientError

from bucketline.core.errors import (
    ErrorCode,
    ObjectStoreError,
    Operation,
    describe_status,
)
from bucketline.storage.transport import DeleteError


def _client_error(code: str, status: int = 404) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": "nope"}, "ResponseMetadata": {"HTTPStatusCode": status}},
        "GetObject",
    )


class TestDescribeStatus:
    def test_known(self):
        assert describe_status(403) == "403 Forbidden"

    def test_unknown(self):
        assert describe_status(799) == "799"


class TestConstructors:
    """Tests for ObjectStoreError constructors."""

    def test_transport_failure_plain_exception(self):
        error = ObjectStoreError.transport_failure(
            Operation.ADD, "media", "a.jpg", ConnectionError("reset by peer"),
        )
        assert error.code is ErrorCode.TRANSPORT_FAILURE
        assert error.message == "ConnectionError: reset by peer"
        assert error.operation == "add"
        assert error.key == "a.jpg"
        assert "error_code" not in error.context
        assert isinstance(error.cause, ConnectionError)

    def test_transport_failure_client_error_code(self):
        error = ObjectStoreError.transport_failure(
            Operation.GET, "media", "missing.jpg", _client_error("NoSuchKey"),
        )
        assert error.context["error_code"] == "NoSuchKey"
        assert error.message.startswith("ClientError:")

    def test_transport_failure_many_keys(self):
        error = ObjectStoreError.transport_failure(
            Operation.DELETE_MANY, "media", ["a", "b"], TimeoutError("slow"),
        )
        assert error.keys == ("a", "b")
        assert error.key is None

    def test_status_failure_upload(self):
        error = ObjectStoreError.status_failure(Operation.ADD, "media", "a.jpg", 403)
        assert error.code is ErrorCode.STATUS_FAILURE
        assert error.message == (
            "Failed to upload the object 'a.jpg'. HttpStatusCode is '403 Forbidden'"
        )
        assert error.context["status_code"] == 403

    def test_status_failure_delete(self):
        error = ObjectStoreError.status_failure(Operation.DELETE, "media", "a.jpg", 500)
        assert error.message.startswith("Failed to delete the object 'a.jpg'.")

    def test_batch_limit_exceeded(self):
        error = ObjectStoreError.batch_limit_exceeded(51, 50)
        assert error.code is ErrorCode.BATCH_LIMIT_EXCEEDED
        assert error.message == "Can't upload more than 50 objects at one time"
        assert error.context == {"operation": "add_batch", "count": 51, "limit": 50}

    def test_partial_delete_failure_names_missing_keys(self):
        error = ObjectStoreError.partial_delete_failure(
            "media",
            ["a", "b", "c"],
            ["b", "c"],
            200,
            [DeleteError("b", "AccessDenied", "Access Denied")],
        )
        assert error.code is ErrorCode.PARTIAL_DELETE_FAILURE
        assert error.message == (
            "Failed to delete objects with keys 'b, c'. HttpStatusCode is '200 OK'"
        )
        assert error.context["missing_keys"] == ["b", "c"]
        assert error.context["errors"] == ["b: AccessDenied Access Denied"]
        assert error.keys == ("a", "b", "c")

    def test_partial_delete_failure_status_only(self):
        error = ObjectStoreError.partial_delete_failure("media", ["a"], [], 500)
        assert error.message == "HttpStatusCode is '500 Internal Server Error'"

    def test_cancelled(self):
        error = ObjectStoreError.cancelled(Operation.ADD, "media", "a.jpg")
        assert error.code is ErrorCode.CANCELLED
        assert error.message == "Operation 'add' on 'a.jpg' was cancelled"

    def test_configuration(self):
        error = ObjectStoreError.configuration("bucket missing", field="bucket_name")
        assert error.code is ErrorCode.CONFIGURATION_ERROR
        assert error.context == {"field": "bucket_name"}


class TestErrorBehaviour:
    def test_str(self):
        error = ObjectStoreError.batch_limit_exceeded(3, 2)
        assert str(error) == "[BATCH_LIMIT_EXCEEDED] Can't upload more than 2 objects at one time"

    def test_with_context_keeps_identity(self):
        error = ObjectStoreError.status_failure(Operation.ADD, "media", "a.jpg", 500)
        enriched = error.with_context(attempt=2)
        assert enriched.error_id == error.error_id
        assert enriched.context["attempt"] == 2
        assert "attempt" not in error.context

    def test_to_dict(self):
        error = ObjectStoreError.transport_failure(
            Operation.GET, "media", "a.jpg", _client_error("AccessDenied", 403),
        )
        data = error.to_dict()
        assert data["code"] == "TRANSPORT_FAILURE"
        assert data["code_value"] == 1001
        assert data["cause"] == "ClientError"
        assert data["context"]["error_code"] == "AccessDenied"

    def test_unique_ids(self):
        first = ObjectStoreError.batch_limit_exceeded(3, 2)
        second = ObjectStoreError.batch_limit_exceeded(3, 2)
        assert first.error_id != second.error_id
