"""Tests for ServiceResult helpers."""

from __future__ import annotations

from dataclasses import fields

from core.exceptions import NotFoundError
from core.services import ServiceResult


class TestServiceResult:
    def test_success_is_truthy(self):
        result = ServiceResult.success({"id": 1})

        assert result
        assert result.data == {"id": 1}
        assert result.error is None

    def test_failure_is_falsy(self):
        result = ServiceResult.failure("boom", "BOOM")

        assert not result
        assert result.data is None
        assert result.error == "boom"
        assert result.error_code == "BOOM"

    def test_carries_only_outcome_fields(self):
        """Responses are built by the views; the result has no HTTP shape."""
        assert [f.name for f in fields(ServiceResult)] == [
            "success",
            "data",
            "error",
            "error_code",
        ]
        assert not hasattr(ServiceResult, "to_response")

    def test_from_application_exception_keeps_code(self):
        result = ServiceResult.from_exception(NotFoundError("Product not found"))

        assert result.error == "Product not found"
        assert result.error_code == "NOT_FOUND"

    def test_from_plain_exception_uses_class_name(self):
        result = ServiceResult.from_exception(KeyError("x"))

        assert result.error_code == "KEYERROR"
