"""
Password strength validation helper.

The minimum length comes from the `min_password_length` system setting.
"""

import re
from dataclasses import dataclass
from typing import List


@dataclass
class PasswordRequirements:
    """Password requirements configuration."""

    min_length: int = 8
    max_length: int = 128
    require_letter: bool = True
    require_digit: bool = True


def validate_password_complexity(
    password: str,
    requirements: PasswordRequirements = PasswordRequirements(),
) -> tuple[bool, List[str]]:
    """
    Validate password against requirements.

    Args:
        password: Password to validate
        requirements: Password requirements configuration

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors: List[str] = []

    if len(password) < requirements.min_length:
        errors.append(
            f"Password must be at least {requirements.min_length} characters long"
        )

    # bcrypt ignores input past 72 bytes
    if len(password) > requirements.max_length or len(password.encode()) > 72:
        errors.append("Password is too long")

    if requirements.require_letter and not re.search(r"[A-Za-z]", password):
        errors.append("Password must contain at least one letter")

    if requirements.require_digit and not re.search(r"\d", password):
        errors.append("Password must contain at least one digit")

    return len(errors) == 0, errors
