"""Input validation: checks caller-supplied fields before a run starts."""


def validate_input(value: str, field: str = "input") -> str:
    """Validate that ``value`` is a non-empty string.

    Returns the stripped input on success.
    Raises ValueError if input is empty or whitespace-only.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty string.")
    return value.strip()


def validate_optional(value, field: str = "input") -> str:
    """Like validate_input, but None and blank strings become ''."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string.")
    return value.strip()
