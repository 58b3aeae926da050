"""
Validators for catalog conversation input.
"""

import hmac
from typing import Optional, Tuple


class TitleValidator:
    """Validate video title."""

    @classmethod
    def validate(cls, title: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate title.

        Returns:
            Tuple of (is_valid, title, error_message)
        """
        title = title.strip()

        if not title:
            return False, None, "Title cannot be empty."

        return True, title, None


class LinkValidator:
    """Recognize links to the supported video platform."""

    DEFAULT_MARKER = "instagram.com"

    def __init__(self, marker: str = DEFAULT_MARKER):
        self.marker = marker

    def is_link(self, text: str) -> bool:
        return self.marker in text

    def validate(self, text: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate link.

        Returns:
            Tuple of (is_valid, url, error_message)
        """
        url = text.strip()

        if not self.is_link(url):
            return False, None, "❌ Please enter a valid Instagram link."

        return True, url, None


class CountValidator:
    """Validate number of requested videos."""

    MIN_COUNT = 1
    MAX_COUNT = 5

    @classmethod
    def validate(
        cls, count_str: str, max_count: Optional[int] = None
    ) -> Tuple[bool, Optional[int], Optional[str]]:
        """
        Validate count.

        Returns:
            Tuple of (is_valid, count, error_message)
        """
        max_count = max_count or cls.MAX_COUNT
        error = f"Please select a number between {cls.MIN_COUNT} and {max_count}."

        # ASCII digits only, no sign, underscore or non-Latin digits
        value = count_str.strip()
        if not (value.isascii() and value.isdigit()):
            return False, None, error

        count = int(value)

        if count < cls.MIN_COUNT or count > max_count:
            return False, None, error

        return True, count, None


class PasswordValidator:
    """Check the shared admin secret."""

    def __init__(self, password: str):
        if not password:
            raise ValueError("Admin password must not be empty")
        self._password = password

    def check(self, text: str) -> bool:
        return hmac.compare_digest(text.encode(), self._password.encode())
