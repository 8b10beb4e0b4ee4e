"""Credential codec for the Authorization header payloads.

Basic credentials and token bundles both travel as standard base64 text.
A token bundle is a JSON object mapping an upstream registry host to the
bearer token minted for it. The reserved key ``self`` holds the proxy's own
shared-secret credential.
"""

import base64
import binascii

from pydantic import TypeAdapter, ValidationError

from .errors import DecodeError

SELF_KEY = "self"

TokenBundle = dict[str, str]

_bundle_adapter = TypeAdapter(TokenBundle)


def decode(text: str) -> bytes:
    """Decode standard base64 text, raising DecodeError on malformed input."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid base64 payload: {e}") from e


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_text(text: str) -> str:
    try:
        return decode(text).decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("credential payload is not valid UTF-8") from e


def decode_bundle(text: str) -> TokenBundle:
    """Decode a base64 JSON token bundle.

    Only a flat object of string values is accepted; anything else
    (arrays, numbers, nested objects) is rejected as a DecodeError.
    """
    raw = decode(text)
    try:
        return _bundle_adapter.validate_json(raw, strict=True)
    except ValidationError as e:
        raise DecodeError(
            f"token bundle must be a JSON object of strings: {e.error_count()} error(s)"
        ) from e


def encode_bundle(bundle: TokenBundle) -> str:
    return encode(_bundle_adapter.dump_json(bundle))
