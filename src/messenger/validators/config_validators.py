from typing import Any


def to_uppercase(value: Any) -> Any:
    """
    Uppercase raw string input from the environment; anything else passes through
    untouched so pydantic can report the real type error.
    """
    if isinstance(value, str):
        return value.strip().upper()
    return value


def to_lowercase(value: Any) -> Any:
    """
    Lowercase raw string input from the environment (see `to_uppercase`).
    """
    if isinstance(value, str):
        return value.strip().lower()
    return value
