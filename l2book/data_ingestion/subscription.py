"""
Coinbase Prime l2_data subscription signing.

The signed string is channel + api key + account id + timestamp + every
product id joined with no separator. Prime rejects the subscription silently
if any part of this layout changes.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Optional, Sequence

from ..utils.config import SubscriptionCredentials


class SigningError(RuntimeError):
    """The subscription signature could not be computed"""


def sign(channel: str,
         api_key: str,
         secret_key: str,
         account_id: str,
         timestamp: str,
         product_ids: Sequence[str]) -> str:
    """Base64 of HMAC-SHA256(secret_key, channel + api_key + account_id + timestamp + products)"""
    message = channel + api_key + account_id + timestamp + "".join(product_ids)
    try:
        digest = hmac.new(secret_key.encode("utf-8"),
                          message.encode("utf-8"),
                          hashlib.sha256).digest()
    except (AttributeError, TypeError, ValueError) as e:
        raise SigningError(f"Unable to compute HMAC-SHA256 signature: {e}") from e
    return base64.b64encode(digest).decode("ascii")


def build_subscribe_message(credentials: SubscriptionCredentials,
                            channel: str,
                            product_ids: Sequence[str],
                            timestamp: Optional[str] = None) -> str:
    """
    Build the JSON subscribe payload sent on every (re)connect.

    Args:
        credentials: API credentials
        channel: Channel name, e.g. ``l2_data``
        product_ids: Instruments to subscribe, in order
        timestamp: Unix seconds as a string; defaults to now
    """
    ts = timestamp if timestamp is not None else str(int(time.time()))
    signature = sign(channel,
                     credentials.api_key,
                     credentials.secret_key.get_secret_value(),
                     credentials.account_id,
                     ts,
                     product_ids)

    payload = {
        "type": "subscribe",
        "channel": channel,
        "access_key": credentials.api_key,
        "api_key_id": credentials.account_id,
        "timestamp": ts,
        "passphrase": credentials.passphrase.get_secret_value(),
        "signature": signature,
        "product_ids": list(product_ids),
    }
    return json.dumps(payload)
