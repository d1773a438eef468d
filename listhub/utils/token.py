"""
Token Management Utilities
Handles encoding/decoding of user configuration in URLs
"""
import base64
import binascii
import json
import hmac
import hashlib
import logging
from typing import Optional

from pydantic import ValidationError

from listhub.core.config import settings
from listhub.models.config import UserConfig

logger = logging.getLogger(__name__)


def _sign(config_json: str, salt: Optional[str] = None) -> str:
    return hmac.new(
        (salt or settings.TOKEN_SALT).encode('utf-8'),
        config_json.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()


def encode_config(config: UserConfig, salt: Optional[str] = None) -> str:
    """
    Encode user configuration into a signed token

    Args:
        config: User configuration object
        salt: Signing salt; process settings when None

    Returns:
        Base64-encoded token string
    """
    config_json = config.model_dump_json()
    payload = {
        'config': config_json,
        'signature': _sign(config_json, salt)
    }
    payload_json = json.dumps(payload)
    return base64.urlsafe_b64encode(payload_json.encode('utf-8')).decode('utf-8')


def decode_config(token: str, salt: Optional[str] = None) -> Optional[UserConfig]:
    """
    Decode and validate user configuration from token

    Args:
        token: Base64-encoded token string
        salt: Signing salt; process settings when None

    Returns:
        UserConfig object if valid, None otherwise
    """
    try:
        payload_json = base64.urlsafe_b64decode(token.encode('utf-8')).decode('utf-8')
        payload = json.loads(payload_json)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    if not isinstance(payload, dict):
        return None
    config_json = payload.get('config')
    signature = payload.get('signature')
    if not isinstance(config_json, str) or not isinstance(signature, str):
        return None

    if not hmac.compare_digest(signature, _sign(config_json, salt)):
        logger.debug("Rejected config token with bad signature")
        return None

    try:
        return UserConfig.model_validate_json(config_json)
    except ValidationError as e:
        logger.warning(f"Signed config token failed validation: {e}")
        return None


def validate_token(token: str, salt: Optional[str] = None) -> bool:
    """Check that a token is properly formatted and signed"""
    return decode_config(token, salt) is not None
