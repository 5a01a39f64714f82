"""Tests for l2_data subscription signing and payload layout."""

import base64
import hashlib
import hmac
import json

import pytest

from l2book.data_ingestion.subscription import SigningError, build_subscribe_message, sign
from l2book.utils.config import SubscriptionCredentials


def reference_signature(secret, message):
    digest = hmac.new(secret.encode(), message.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


@pytest.fixture
def credentials():
    return SubscriptionCredentials(api_key="K", secret_key="S", passphrase="P", account_id="A")


class TestSign:
    def test_golden_vector(self):
        signature = sign("l2_data", "K", "S", "A", "1700000000", ["ETH-USD"])
        assert signature == reference_signature("S", "l2_dataKA1700000000ETH-USD")
        assert len(base64.b64decode(signature)) == 32

    def test_deterministic(self):
        first = sign("l2_data", "K", "S", "A", "1700000000", ["ETH-USD"])
        second = sign("l2_data", "K", "S", "A", "1700000000", ["ETH-USD"])
        assert first == second

    def test_products_joined_without_separator(self):
        signature = sign("l2_data", "K", "S", "A", "1700000000", ["ETH-USD", "BTC-USD"])
        assert signature == reference_signature("S", "l2_dataKA1700000000ETH-USDBTC-USD")

    def test_field_order_matters(self):
        assert sign("l2_data", "K", "S", "A", "1700000000", ["ETH-USD"]) != \
            sign("l2_data", "A", "S", "K", "1700000000", ["ETH-USD"])

    def test_non_text_secret_is_a_signing_error(self):
        with pytest.raises(SigningError):
            sign("l2_data", "K", None, "A", "1700000000", ["ETH-USD"])


class TestSubscribeMessage:
    def test_payload_fields(self, credentials):
        raw = build_subscribe_message(credentials, "l2_data", ["ETH-USD", "BTC-USD"], timestamp="1700000000")
        payload = json.loads(raw)

        assert list(payload) == [
            "type", "channel", "access_key", "api_key_id",
            "timestamp", "passphrase", "signature", "product_ids",
        ]
        assert payload["type"] == "subscribe"
        assert payload["channel"] == "l2_data"
        assert payload["access_key"] == "K"
        assert payload["api_key_id"] == "A"
        assert payload["timestamp"] == "1700000000"
        assert payload["passphrase"] == "P"
        assert payload["product_ids"] == ["ETH-USD", "BTC-USD"]
        assert payload["signature"] == sign("l2_data", "K", "S", "A", "1700000000", ["ETH-USD", "BTC-USD"])

    def test_default_timestamp_is_unix_seconds(self, credentials, monkeypatch):
        monkeypatch.setattr("l2book.data_ingestion.subscription.time.time", lambda: 1700000000.987)
        payload = json.loads(build_subscribe_message(credentials, "l2_data", ["ETH-USD"]))
        assert payload["timestamp"] == "1700000000"

    def test_secrets_not_in_repr(self, credentials):
        assert "'S'" not in repr(credentials)
        assert "'P'" not in repr(credentials)
