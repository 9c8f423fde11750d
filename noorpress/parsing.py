"""Shared parsing helpers for config, bundle and CLI value normalization."""

from __future__ import annotations


_TRUE_BOOLEAN_TOKENS = frozenset({"1", "true", "yes", "on"})
_FALSE_BOOLEAN_TOKENS = frozenset({"0", "false", "no", "off"})


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_permissive_boolean(value: object) -> bool | None:
    """Parse a permissive boolean token and return `None` for invalid values."""

    if isinstance(value, bool):
        return value

    normalized = normalize_optional_string(value)
    if normalized is None:
        return None

    token = normalized.lower()
    if token in _TRUE_BOOLEAN_TOKENS:
        return True
    if token in _FALSE_BOOLEAN_TOKENS:
        return False
    return None


def parse_token_list(value: object) -> tuple[str, ...]:
    """Parse a comma-separated string or a sequence into lowercase unique tokens.

    Order of first appearance is preserved; blank tokens are dropped.
    """

    if value is None:
        return tuple()
    if isinstance(value, str):
        raw_tokens: list[object] = list(value.split(","))
    elif isinstance(value, (list, tuple)):
        raw_tokens = list(value)
    else:
        raise ValueError(f"Expected a comma-separated string or list, got `{value!r}`.")

    tokens: list[str] = []
    for raw in raw_tokens:
        token = normalize_optional_string(raw)
        if token is None:
            continue
        lowered = token.lower().replace("-", "_")
        if lowered not in tokens:
            tokens.append(lowered)
    return tuple(tokens)


def parse_positive_number(value: object, field_name: str) -> float:
    """Parse a strictly positive int/float value (booleans rejected)."""

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a positive number.")
    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(f"`{field_name}` must be a positive number.")
        try:
            parsed = float(normalized)
        except ValueError as exc:
            raise ValueError(f"`{field_name}` must be a positive number.") from exc
    if parsed <= 0:
        raise ValueError(f"`{field_name}` must be a positive number.")
    return parsed


def sanitize_filename(name: str, fallback: str = "book") -> str:
    """Reduce a title to `[A-Za-z0-9_-]` runs joined by single hyphens."""

    replaced = "".join(
        character if (character.isascii() and character.isalnum()) or character in "-_" else "-"
        for character in name
    )
    collapsed = "-".join(part for part in replaced.split("-") if part)
    return collapsed or fallback
