"""Profanity check shared by user-facing text fields."""

from better_profanity import profanity


def is_profane(text: str) -> bool:
    return bool(text) and profanity.contains_profanity(text)


def reject_profanity(message: str):
    """Build an after-validator that rejects profane text with message."""

    def check(value: str) -> str:
        if is_profane(value):
            raise ValueError(message)
        return value

    return check
