"""Tests for notification models."""

import pytest
from pydantic import ValidationError

from core.exceptions import ResolutionError
from ipn.types import Notification, NotificationHeaders, ProcessorCredentials


class TestProcessorCredentials:

    def test_secret_not_in_repr(self):
        creds = ProcessorCredentials(api_key="k", api_secret="super-secret")
        assert "super-secret" not in repr(creds)

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            ProcessorCredentials(api_key="", api_secret="s")


class TestNotificationHeaders:

    def test_reads_headers_case_insensitively(self):
        headers = NotificationHeaders.from_mapping(
            {"api-sign": "abc", "Api-Key": "k", "API-NONCE": "1"}
        )
        assert (headers.signature, headers.api_key, headers.nonce) == ("abc", "k", "1")

    def test_missing_header_is_none(self):
        headers = NotificationHeaders.from_mapping({"API-KEY": "k"})
        assert headers.signature is None
        assert headers.nonce is None


class TestNotificationFromBody:

    def test_parses_order_and_status(self):
        notification = Notification.from_body(b'{"order": "1001", "status": "paid", "id": "inv_1"}')
        assert notification.order_reference == "1001"
        assert notification.external_status == "paid"
        assert notification.payload["id"] == "inv_1"

    def test_numeric_order_stringified(self):
        assert Notification.from_body(b'{"order": 1001, "status": "paid"}').order_reference == "1001"

    def test_missing_fields_are_none(self):
        notification = Notification.from_body(b"{}")
        assert notification.order_reference is None
        assert notification.external_status is None

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'"paid"', b"\xff\xfe"])
    def test_invalid_body_raises(self, body):
        with pytest.raises(ResolutionError):
            Notification.from_body(body)
