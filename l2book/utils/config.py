"""
Order Book Printer Configuration
"""

import os
from typing import Dict, Any, List, Mapping, Optional
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from dotenv import find_dotenv, load_dotenv
from loguru import logger


DEFAULT_WS_URL = "wss://ws-feed.prime.coinbase.com"
DEFAULT_CHANNEL = "l2_data"
DEFAULT_PRODUCT_IDS = ["ETH-USD", "BTC-USD"]

# Environment variable -> credentials field
CREDENTIAL_ENV_VARS = {
    "API_KEY": "api_key",
    "SECRET_KEY": "secret_key",
    "PASSPHRASE": "passphrase",
    "SVC_ACCOUNTID": "account_id",
}


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid"""


class SubscriptionCredentials(BaseModel):
    """Coinbase Prime API credentials, used only to sign the subscription"""
    api_key: str = Field(min_length=1, description="Prime API access key")
    secret_key: SecretStr = Field(description="Prime API signing secret")
    passphrase: SecretStr = Field(description="Prime API passphrase")
    account_id: str = Field(min_length=1, description="Service account id")

    @field_validator("secret_key", "passphrase")
    @classmethod
    def _not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("must not be empty")
        return value


class FeedConfig(BaseModel):
    """Market data feed configuration"""
    ws_url: str = Field(default=DEFAULT_WS_URL, description="WebSocket URL")
    channel: str = Field(default=DEFAULT_CHANNEL, description="Subscribed channel")
    product_ids: List[str] = Field(default_factory=lambda: list(DEFAULT_PRODUCT_IDS),
                                   min_length=1, description="Instruments to subscribe")
    ping_interval: float = Field(default=20.0, description="WebSocket ping interval in seconds")
    ping_timeout: float = Field(default=10.0, description="WebSocket ping timeout in seconds")
    max_reconnect_attempts: int = Field(default=10, description="Consecutive failed reconnects before giving up")
    reconnect_delay: float = Field(default=1.0, description="Initial reconnect delay in seconds")
    max_reconnect_delay: float = Field(default=60.0, description="Reconnect delay ceiling in seconds")


class Config:
    """Main configuration class"""

    def __init__(self, credentials: Optional[SubscriptionCredentials], feed: FeedConfig):
        self.credentials = credentials
        self.feed = feed

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (secrets stay masked)"""
        return {
            "credentials": self.credentials.model_dump() if self.credentials else None,
            "feed": self.feed.model_dump(),
        }


def load_credentials(environ: Mapping[str, str]) -> SubscriptionCredentials:
    """Read the four required credential variables; any missing one is fatal"""
    missing = [name for name in CREDENTIAL_ENV_VARS if not environ.get(name)]
    if missing:
        raise ConfigurationError(f"Missing env var: {', '.join(missing)}")

    try:
        return SubscriptionCredentials(**{
            field: environ[name] for name, field in CREDENTIAL_ENV_VARS.items()
        })
    except ValidationError as e:
        raise ConfigurationError(f"Invalid credentials: {e}") from e


def load_feed_config(environ: Mapping[str, str]) -> FeedConfig:
    """Read optional feed overrides"""
    overrides: Dict[str, Any] = {}
    if environ.get("L2BOOK_WS_URL"):
        overrides["ws_url"] = environ["L2BOOK_WS_URL"]
    if environ.get("L2BOOK_CHANNEL"):
        overrides["channel"] = environ["L2BOOK_CHANNEL"]
    if environ.get("L2BOOK_PRODUCT_IDS"):
        overrides["product_ids"] = [
            p.strip() for p in environ["L2BOOK_PRODUCT_IDS"].split(",") if p.strip()
        ]

    try:
        return FeedConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid feed configuration: {e}") from e


def load_config(environ: Optional[Mapping[str, str]] = None,
                require_credentials: bool = True,
                use_dotenv: bool = True) -> Config:
    """
    Build the configuration once at startup.

    Args:
        environ: Mapping to read from, defaults to ``os.environ``
        require_credentials: Offline replay runs without credentials
        use_dotenv: Load a ``.env`` file into the process environment first
    """
    if environ is None:
        if use_dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    credentials = load_credentials(environ) if require_credentials else None
    feed = load_feed_config(environ)

    logger.info(f"Configuration loaded: channel={feed.channel}, products={feed.product_ids}")
    return Config(credentials=credentials, feed=feed)
