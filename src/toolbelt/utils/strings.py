"""String helpers."""


def capitalize(text: str | None) -> str:
    """Upper-case the first character and leave the rest untouched.

    Unlike ``str.capitalize`` the remaining characters keep their case.
    Empty or ``None`` input yields ``""``.
    """
    if not text:
        return ""
    return text[0].upper() + text[1:]


def reverse(text: str) -> str:
    """Reverse a string code point by code point (emoji stay intact)."""
    return text[::-1]


def is_empty(text: str | None) -> bool:
    """Return True for ``None``, ``""`` or whitespace-only strings."""
    return not text or not text.strip()
