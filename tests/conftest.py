"""
Shared fixtures: in-memory repository, recording gateway, machine factory.
"""

import os
import random
from typing import Optional

import pytest

# Settings are only built by src.config / src.main, but keep imports safe.
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST")
os.environ.setdefault("ADMIN_PASSWORD", "secret")
os.environ.setdefault("STORAGE_BACKEND", "sqlite")

from src.core.catalog import (
    ConversationMachine,
    EntryMode,
    MessagingGateway,
    ReplyKeyboard,
    RepositoryError,
    SessionStore,
    VideoRecord,
    VideoRepository,
)
from src.core.catalog.sampler import SampleResult, filter_by_tag, sample
from src.core.catalog.tags import ordered_tags


PASSWORD = "secret"
CHAT_ID = 42
LINK = "https://www.instagram.com/reel/abc123/"


class FakeRepository(VideoRepository):
    """Keeps records in a list and counts calls."""

    def __init__(self, records: Optional[list[VideoRecord]] = None, seed: int = 7):
        self.records = list(records or [])
        self.rng = random.Random(seed)
        self.calls: list[str] = []
        self.fail = False

    def _touch(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            raise RepositoryError(f"{name} unavailable")

    async def get_all_tags(self) -> list[str]:
        self._touch("get_all_tags")
        return ordered_tags(record.tags for record in self.records)

    async def get_videos_by_tag(self, tag: str, limit: int) -> SampleResult:
        self._touch("get_videos_by_tag")
        return sample(filter_by_tag(self.records, tag), limit, self.rng)

    async def add_video(self, title: str, url: str, tags: str) -> None:
        self._touch("add_video")
        self.records.append(VideoRecord(title=title, url=url, tags=tags))

    async def is_duplicate_url(self, url: str) -> bool:
        self._touch("is_duplicate_url")
        return any(record.url == url for record in self.records)


class FakeGateway(MessagingGateway):
    """Records outbound traffic instead of sending it."""

    def __init__(self):
        self.sent: list[tuple[int, str, Optional[ReplyKeyboard]]] = []
        self.deleted: list[tuple[int, int]] = []
        self.undeletable: set[int] = set()

    async def _send(self, conversation_id, text, keyboard) -> None:
        self.sent.append((conversation_id, text, keyboard))

    async def delete_message(self, conversation_id: int, message_id: int) -> bool:
        if message_id in self.undeletable:
            return False
        self.deleted.append((conversation_id, message_id))
        return True

    @property
    def texts(self) -> list[str]:
        return [text for _, text, _ in self.sent]

    @property
    def last_text(self) -> str:
        return self.sent[-1][1]

    @property
    def last_keyboard(self) -> Optional[ReplyKeyboard]:
        return self.sent[-1][2]

    def clear(self) -> None:
        self.sent.clear()
        self.deleted.clear()


def make_records(*rows: tuple[str, str, str]) -> list[VideoRecord]:
    return [VideoRecord(title=t, url=u, tags=g) for t, u, g in rows]


@pytest.fixture
def repository():
    return FakeRepository(make_records(
        ("Squat basics", "https://www.instagram.com/reel/1/", "strength"),
        ("Hip opener", "https://www.instagram.com/reel/2/", "mobility"),
        ("Intervals", "https://www.instagram.com/reel/3/", "cardio,strength"),
    ))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def make_machine(repository, gateway, sessions):
    def factory(entry_mode: EntryMode = EntryMode.MENU) -> ConversationMachine:
        return ConversationMachine(
            repository=repository,
            gateway=gateway,
            sessions=sessions,
            admin_password=PASSWORD,
            entry_mode=entry_mode,
        )
    return factory


@pytest.fixture
def machine(make_machine):
    return make_machine(EntryMode.MENU)
