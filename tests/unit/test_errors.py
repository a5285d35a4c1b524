"""Unit tests for AppError hierarchy."""

import pytest

from errors import (
    AppError,
    ConflictError,
    ExternalBillingFailed,
    NotFoundError,
    StoreError,
    StoreUnavailable,
    ValidationError,
    ViewSyncFailed,
)


@pytest.mark.parametrize(
    "cls, status, code",
    [
        (ValidationError, 400, "validation_error"),
        (NotFoundError, 404, "not_found"),
        (ConflictError, 409, "conflict"),
        (StoreError, 502, "store_error"),
        (StoreUnavailable, 503, "store_unavailable"),
        (ViewSyncFailed, 500, "view_sync_failed"),
        (ExternalBillingFailed, 502, "external_billing_failed"),
    ],
    ids=lambda v: v.__name__ if isinstance(v, type) else None,
)
def test_status_and_code(cls, status, code):
    e = cls("boom")
    assert e.status_code == status
    assert e.error_code == code
    assert e.message == "boom"
    assert isinstance(e, AppError)


def test_store_unavailable_is_a_store_error():
    assert issubclass(StoreUnavailable, StoreError)


def test_conflict_is_not_a_store_error():
    # Conflicts go back to the caller for a retry decision, unlike transport failures
    assert not issubclass(ConflictError, StoreError)


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("geodirect not found")
        assert e.to_dict() == {"error": "geodirect not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "shop_id"}, "field", "shop_id"),
            ({"details": {"status_code": 500}}, "details", {"status_code": 500}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = StoreError("failed", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = ConflictError("stale").to_dict()
        assert "field" not in d
        assert "details" not in d
