"""
Export text obfuscation

WARNING: this is a reversible text transform (Base64 / percent-encoding
behind a prefix) that only keeps answers from being readable at a glance.
It provides no confidentiality; anyone can decode it.
"""
import base64
import binascii
import json
import logging
import re
from urllib.parse import unquote

logger = logging.getLogger(__name__)

ENCODED_PREFIX = "BMVQUIZ_ENCODED_"
UTF8_PREFIX = "BMVQUIZ_UTF8_"
SIMPLE_PREFIX = "BMVQUIZ_SIMPLE_"
PREFIXES = (ENCODED_PREFIX, UTF8_PREFIX, SIMPLE_PREFIX)

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/=]+$")


def encode_quiz_data(text: str) -> str:
    """Obfuscate export JSON as prefix + Base64 of its UTF-8 bytes"""
    return ENCODED_PREFIX + base64.b64encode(text.encode("utf-8")).decode("ascii")


def is_encoded_quiz_data(data: str) -> bool:
    return data.startswith(PREFIXES)


def _looks_like_json(text: str) -> bool:
    text = text.strip()
    return (text.startswith("{") and text.endswith("}")) or (
        text.startswith("[") and text.endswith("]")
    )


def _b64_to_text(encoded: str) -> str:
    return base64.b64decode(encoded, validate=True).decode("utf-8")


def decode_quiz_data(data: str) -> str:
    """
    Undo any known obfuscation

    Handles the Base64, UTF-8 percent-encoded and simple percent-encoded
    prefixed forms, bare Base64 JSON and percent-encoded JSON. Anything
    else comes back unchanged.
    """
    if not data:
        return ""

    data = data.strip()

    if data.startswith(ENCODED_PREFIX):
        try:
            return _b64_to_text(data[len(ENCODED_PREFIX):])
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            logger.warning(f"Could not decode Base64 export data: {str(e)}")

    for prefix in (UTF8_PREFIX, SIMPLE_PREFIX):
        if data.startswith(prefix):
            return unquote(data[len(prefix):])

    try:
        parsed = json.loads(data)
        if isinstance(parsed, (dict, list)):
            return data
    except ValueError:
        pass

    if len(data) > 20 and _BASE64_RE.match(data):
        try:
            decoded = _b64_to_text(data)
            if _looks_like_json(decoded):
                return decoded
        except (binascii.Error, UnicodeDecodeError, ValueError):
            logger.debug("Input looked like Base64 but did not decode")

    decoded = unquote(data)
    if decoded != data and _looks_like_json(decoded):
        return decoded

    return data
