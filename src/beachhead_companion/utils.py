from __future__ import annotations

from collections.abc import Iterable

_TRUE_WORDS = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "n", "off"})


def normalize_bool(value: object) -> bool | None:
    """Interpret an environment flag; None when unset or unrecognized."""
    if value is None or isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def parse_port(value: object, *, field: str) -> int:
    if value is None:
        raise ValueError(f"Missing {field}")
    try:
        port = int(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Invalid {field}") from e
    if port <= 0 or port > 65535:
        raise ValueError(f"Invalid {field}")
    return port


def unique_names(values: Iterable[object] | None) -> list[str]:
    """Strip, drop empties and de-duplicate, keeping first-seen order."""
    out: list[str] = []
    seen: set[str] = set()
    for raw in values or []:
        s = str(raw or "").strip()
        if not s or s in seen:
            continue
        seen.add(s)
        out.append(s)
    return out
