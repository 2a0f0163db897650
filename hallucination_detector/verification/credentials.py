"""Credential format predicates.

These only check that a key looks like a key for its provider. They are used
when a run asks for strict credential checking; the upstream service remains
the authority on whether a key is valid.
"""

import re

_ANTHROPIC_KEY = re.compile(r"^[A-Za-z0-9\-_]+$")
_UUID_V4 = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_SK_TOKEN = re.compile(r"^sk-[A-Za-z0-9\-_]{16,}$")


def is_valid_anthropic_key(key: str) -> bool:
    return (
        isinstance(key, str)
        and key.startswith("sk-ant-")
        and len(key) >= 50
        and bool(_ANTHROPIC_KEY.match(key))
    )


def is_valid_exa_key(key: str) -> bool:
    return isinstance(key, str) and bool(_UUID_V4.match(key))


def is_valid_deepseek_key(key: str) -> bool:
    return isinstance(key, str) and bool(_SK_TOKEN.match(key))


def is_valid_bocha_key(key: str) -> bool:
    return isinstance(key, str) and bool(_SK_TOKEN.match(key))


CREDENTIAL_VALIDATORS = {
    "anthropic_api_key": is_valid_anthropic_key,
    "exa_api_key": is_valid_exa_key,
    "deepseek_api_key": is_valid_deepseek_key,
    "bocha_api_key": is_valid_bocha_key,
}


def mask_key(key: str | None) -> str:
    """Render a key for display: prefix and length only."""
    if not key:
        return "<not set>"
    return f"{key[:6]}... ({len(key)} chars)"
