"""Tests for environment-driven configuration."""

import pytest

from l2book.utils.config import (
    DEFAULT_PRODUCT_IDS,
    DEFAULT_WS_URL,
    ConfigurationError,
    load_config,
)

REQUIRED_ENV = {
    "API_KEY": "key",
    "SECRET_KEY": "secret",
    "PASSPHRASE": "phrase",
    "SVC_ACCOUNTID": "account",
}


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(dict(REQUIRED_ENV))
        assert config.credentials.api_key == "key"
        assert config.credentials.secret_key.get_secret_value() == "secret"
        assert config.credentials.account_id == "account"
        assert config.feed.ws_url == DEFAULT_WS_URL
        assert config.feed.channel == "l2_data"
        assert config.feed.product_ids == DEFAULT_PRODUCT_IDS

    @pytest.mark.parametrize("name", sorted(REQUIRED_ENV))
    def test_missing_credential_is_fatal(self, name):
        env = dict(REQUIRED_ENV)
        del env[name]
        with pytest.raises(ConfigurationError, match=name):
            load_config(env)

    @pytest.mark.parametrize("name", sorted(REQUIRED_ENV))
    def test_empty_credential_is_fatal(self, name):
        env = dict(REQUIRED_ENV, **{name: ""})
        with pytest.raises(ConfigurationError, match=name):
            load_config(env)

    def test_replay_needs_no_credentials(self):
        config = load_config({}, require_credentials=False)
        assert config.credentials is None

    def test_feed_overrides(self):
        env = dict(REQUIRED_ENV,
                   L2BOOK_WS_URL="wss://example.invalid/feed",
                   L2BOOK_PRODUCT_IDS=" SOL-USD, ETH-USD ,",
                   L2BOOK_CHANNEL="l2_data")
        config = load_config(env)
        assert config.feed.ws_url == "wss://example.invalid/feed"
        assert config.feed.product_ids == ["SOL-USD", "ETH-USD"]

    def test_empty_product_list_is_rejected(self):
        with pytest.raises(ConfigurationError):
            load_config(dict(REQUIRED_ENV, L2BOOK_PRODUCT_IDS=" , "))

    def test_reads_process_environment(self, monkeypatch):
        for name, value in REQUIRED_ENV.items():
            monkeypatch.setenv(name, value)
        config = load_config(use_dotenv=False)
        assert config.credentials.passphrase.get_secret_value() == "phrase"

    def test_to_dict_masks_secrets(self):
        dumped = str(load_config(dict(REQUIRED_ENV)).to_dict())
        assert "secret" not in dumped.replace("secret_key", "")
        assert "phrase" not in dumped.replace("passphrase", "")
