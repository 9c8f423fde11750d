"""ISBN checksum validation, conversion and display formatting.

Responsibilities:
- Validate ISBN-13 (mod 10, weights 1/3) and ISBN-10 (mod 11, `X` = 10).
- Convert between ISBN-10 and 978-prefixed ISBN-13.
- Insert display hyphens using a fixed approximate grouping.
"""

from __future__ import annotations

from ..errors import InvalidISBNError

BOOKLAND_PREFIX = "978"


def clean_isbn(code: object) -> str:
    """Strip hyphens and whitespace from an ISBN candidate."""

    return "".join(character for character in str(code) if character not in "- \t\r\n")


def isbn13_check_digit(first_twelve: str) -> str:
    """Return the ISBN-13 check digit for 12 leading digits."""

    total = sum(
        int(digit) * (1 if index % 2 == 0 else 3) for index, digit in enumerate(first_twelve)
    )
    return str((10 - total % 10) % 10)


def isbn10_check_digit(first_nine: str) -> str:
    """Return the ISBN-10 check character (`0`-`9` or `X`) for 9 leading digits."""

    total = sum(int(digit) * (10 - index) for index, digit in enumerate(first_nine))
    value = (11 - total % 11) % 11
    return "X" if value == 10 else str(value)


def validate_isbn13(code: object) -> bool:
    """Return whether `code` is a well-formed ISBN-13 with a correct check digit."""

    if not isinstance(code, str):
        return False
    cleaned = clean_isbn(code)
    if len(cleaned) != 13 or not cleaned.isascii() or not cleaned.isdigit():
        return False
    return isbn13_check_digit(cleaned[:12]) == cleaned[12]


def validate_isbn10(code: object) -> bool:
    """Return whether `code` is a well-formed ISBN-10 with a correct check character."""

    if not isinstance(code, str):
        return False
    cleaned = clean_isbn(code).upper()
    if len(cleaned) != 10 or not cleaned.isascii():
        return False
    body, check = cleaned[:9], cleaned[9]
    if not body.isdigit() or not (check.isdigit() or check == "X"):
        return False
    return isbn10_check_digit(body) == check


def isbn10_to_isbn13(isbn10: str) -> str:
    """Convert a valid ISBN-10 into its 978-prefixed ISBN-13.

    Raises:
        InvalidISBNError: If `isbn10` is malformed.
    """

    if not validate_isbn10(isbn10):
        raise InvalidISBNError(f"`{isbn10}` is not a valid ISBN-10.")
    base = BOOKLAND_PREFIX + clean_isbn(isbn10)[:9]
    return base + isbn13_check_digit(base)


def isbn13_to_isbn10(isbn13: str) -> str:
    """Convert a valid 978-prefixed ISBN-13 into its ISBN-10.

    Raises:
        InvalidISBNError: If `isbn13` is malformed or not 978-prefixed.
    """

    if not validate_isbn13(isbn13):
        raise InvalidISBNError(f"`{isbn13}` is not a valid ISBN-13.")
    cleaned = clean_isbn(isbn13)
    if not cleaned.startswith(BOOKLAND_PREFIX):
        raise InvalidISBNError(
            f"`{isbn13}` has no ISBN-10 equivalent; only 978-prefixed codes convert."
        )
    body = cleaned[3:12]
    return body + isbn10_check_digit(body)


def derive_isbn10(isbn13: str) -> str | None:
    """Return the ISBN-10 form of a valid ISBN-13, or `None` for 979 codes."""

    if not clean_isbn(isbn13).startswith(BOOKLAND_PREFIX):
        return None
    return isbn13_to_isbn10(isbn13)


def normalize_isbn(code: str) -> str:
    """Return the canonical ISBN-13 for a valid ISBN-10 or ISBN-13.

    Raises:
        InvalidISBNError: If the code fails validation. Codes are never corrected.
    """

    if validate_isbn13(code):
        return clean_isbn(code)
    if validate_isbn10(code):
        return isbn10_to_isbn13(code)
    raise InvalidISBNError(
        f"`{code}` is not a valid ISBN-10 or ISBN-13.",
        hint="Check for mistyped or transposed digits; checksums are never auto-corrected.",
    )


def format_isbn(code: str) -> str:
    """Insert display hyphens.

    ISBN-13 is grouped 3-1-6-2-1 and ISBN-10 1-6-2-1. Real group boundaries
    vary by registration group and registrant, so this is a display aid only.
    Inputs of any other length are returned unchanged.
    """

    cleaned = clean_isbn(code)
    if len(cleaned) == 13:
        return f"{cleaned[:3]}-{cleaned[3]}-{cleaned[4:10]}-{cleaned[10:12]}-{cleaned[12]}"
    if len(cleaned) == 10:
        return f"{cleaned[0]}-{cleaned[1:7]}-{cleaned[7:9]}-{cleaned[9]}"
    return code
