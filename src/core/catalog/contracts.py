"""
Interfaces of the collaborators the conversation machine talks to.
Allows switching between Telegram / test gateways and Sheets / SQLite storage.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from src.core.catalog.models import ReplyKeyboard
from src.core.catalog.sampler import SampleResult

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Backing store could not be reached or rejected the request."""


class VideoRepository(ABC):
    """Abstract base class for record storage."""

    @abstractmethod
    async def get_all_tags(self) -> list[str]:
        """
        Get every tag on file.

        Returns:
            Normalized tags in order of first occurrence, without duplicates
        """
        pass

    @abstractmethod
    async def get_videos_by_tag(self, tag: str, limit: int) -> SampleResult:
        """
        Get a random sample of records whose tags contain tag.

        Args:
            tag: Tag to look for (case-insensitive substring)
            limit: Maximum number of records

        Returns:
            SampleResult with at most limit records
        """
        pass

    @abstractmethod
    async def add_video(self, title: str, url: str, tags: str) -> None:
        """Append one record. Uniqueness is the caller's concern."""
        pass

    @abstractmethod
    async def is_duplicate_url(self, url: str) -> bool:
        """Exact match against all stored urls."""
        pass


class MessagingGateway(ABC):
    """Abstract base class for chat transports."""

    async def deliver(
        self,
        conversation_id: int,
        text: str,
        keyboard: Optional[ReplyKeyboard] = None,
    ) -> None:
        """Send text, optionally with a keyboard. Blank text is not sent."""
        text = (text or "").strip()
        if not text:
            logger.debug(f"Suppressed empty message to {conversation_id}")
            return
        await self._send(conversation_id, text, keyboard)

    @abstractmethod
    async def _send(
        self,
        conversation_id: int,
        text: str,
        keyboard: Optional[ReplyKeyboard],
    ) -> None:
        """Transport-specific send."""
        pass

    @abstractmethod
    async def delete_message(self, conversation_id: int, message_id: int) -> bool:
        """
        Delete a message, best effort.

        Returns:
            True if deleted, False if the transport refused. Never raises.
        """
        pass
