"""Canonical cache key construction.

Keys have the shape ``namespace:name1=value1&name2=value2`` with parameter
names sorted, so the same logical request always lands on the same key no
matter how the caller built its parameter mapping.
"""

from collections.abc import Mapping
from typing import Any

from insight_cache.errors import ValidationError

NAMESPACE_SEPARATOR = ":"
PAIR_DELIMITER = "&"

# Delimiters inside names and values are percent-escaped so distinct params never share a key
_ESCAPES = str.maketrans({"%": "%25", "&": "%26", "=": "%3D", ",": "%2C"})


def _escape(text: str) -> str:
    return text.translate(_ESCAPES)


def _render(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_render(item) for item in value)
    return _escape(str(value))


def build_key(namespace: str, params: Mapping[str, Any] | None = None) -> str:
    """Build a stable cache key from a namespace and a parameter mapping.

    Args:
        namespace: Logical namespace (e.g. ``"metrics"``). Must be non-empty
            and must not contain ``":"``.
        params: Request parameters. Order does not matter. ``%``, ``&``, ``=``
            and ``,`` inside names and values are percent-escaped.

    Returns:
        The canonical cache key

    Raises:
        ValidationError: If the namespace is empty or malformed

    Example:
        ```python
        build_key("metrics", {"source": "ga4", "days": 30})
        # "metrics:days=30&source=ga4"
        ```
    """
    if not namespace or not namespace.strip():
        raise ValidationError("Cache namespace must not be empty")
    if NAMESPACE_SEPARATOR in namespace:
        raise ValidationError(f"Cache namespace must not contain '{NAMESPACE_SEPARATOR}': {namespace!r}")

    params = params or {}
    pairs = PAIR_DELIMITER.join(f"{_escape(str(name))}={_render(params[name])}" for name in sorted(params))
    return f"{namespace}{NAMESPACE_SEPARATOR}{pairs}"


def validate_key(key: str) -> str:
    """Reject empty keys before they reach a tier."""
    if not isinstance(key, str) or not key:
        raise ValidationError("Cache key must be a non-empty string")
    return key


def validate_pattern(pattern: str) -> str:
    """Reject empty prefixes, which would match every key."""
    if not isinstance(pattern, str) or not pattern:
        raise ValidationError("Invalidation pattern must be a non-empty string; use clear() to drop everything")
    return pattern
