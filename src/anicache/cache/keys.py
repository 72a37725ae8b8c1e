"""Cache key derivation.

Keys are plain delimiter-joined strings (``animeInfo-21-gogoanime``).
Inputs are caller-controlled identifiers, so no hashing is needed; the
readable form also makes ``anicache cache stats`` output useful.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

KEY_DELIMITER = "-"


def make_key(operation: str, *parts: str) -> str:
    """Build a cache key from an operation name and ordered key parts.

    Args:
        operation: Logical operation name, e.g. ``"animeInfo"``.
        *parts: Ordered identifiers that distinguish one request from
            another (ids, page numbers, provider names).

    Returns:
        The joined key, e.g. ``make_key("animeInfo", "21", "gogoanime")``
        gives ``"animeInfo-21-gogoanime"``.
    """
    return KEY_DELIMITER.join([operation, *parts])


def normalize_params(params: Mapping[str, Any]) -> list[str]:
    """Canonicalise a parameter mapping into ordered ``name=value`` parts.

    Parameters are sorted by name and ``None`` values are dropped, so two
    mappings with the same fields in a different order produce the same
    parts. Lists and dicts are JSON-encoded with sorted keys.

    Args:
        params: Request parameters.

    Returns:
        A list of ``name=value`` strings suitable for :func:`make_key`.
    """
    return [
        f"{name}={_render_value(params[name])}"
        for name in sorted(params)
        if params[name] is not None
    ]


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"))
    return str(value)
