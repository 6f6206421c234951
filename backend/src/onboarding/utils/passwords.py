"""Random password generation for Cognito users and database roles."""

from __future__ import annotations

import secrets
import string

SYMBOLS = "!#$%&*+-.:=?^_"
MIN_PASSWORD_LENGTH = 8

_CHARACTER_CLASSES = (
    string.ascii_uppercase,
    string.ascii_lowercase,
    string.digits,
    SYMBOLS,
)


def generate_password(length: int) -> str:
    """Generate a password satisfying the tenant user pool policy.

    The result holds at least one upper-case letter, one lower-case
    letter, one digit and one symbol, and is exactly ``length`` long.

    Raises:
        ValueError: If ``length`` is below 8.
    """
    if length < MIN_PASSWORD_LENGTH:
        raise ValueError(
            "Invalid password length. "
            f"Minimum of {MIN_PASSWORD_LENGTH} characters is required."
        )

    rng = secrets.SystemRandom()
    characters = [rng.choice(chars) for chars in _CHARACTER_CLASSES]
    alphabet = "".join(_CHARACTER_CLASSES)
    characters.extend(
        rng.choice(alphabet) for _ in range(length - len(_CHARACTER_CLASSES))
    )
    rng.shuffle(characters)
    return "".join(characters)
