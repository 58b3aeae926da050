"""
Data models for the video catalog.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from aiogram.fsm.state import State


class EntryMode(Enum):
    """How an idle conversation is greeted."""
    MENU = "menu"               # Main menu: Get Videos / Add Video
    AUTO_START = "auto_start"   # Straight to tag selection


class TagChoiceMode(Enum):
    """How tags are entered in the add flow."""
    LIST = "list"               # Tap existing tags
    MANUAL = "manual"           # Type comma-separated tags


@dataclass
class VideoRecord:
    """Single catalog entry."""
    title: str
    url: str
    tags: str                   # Comma-joined, lower-case tokens

    @classmethod
    def from_row(cls, row: list) -> "VideoRecord":
        """Build a record from a storage row, tolerating missing cells."""
        cells = list(row) + [""] * (3 - len(row))
        return cls(title=cells[0] or "", url=cells[1] or "", tags=cells[2] or "")

    def to_row(self) -> list[str]:
        return [self.title, self.url, self.tags]


@dataclass
class Draft:
    """Fields accumulated while a flow is pending."""
    title: Optional[str] = None
    url: Optional[str] = None
    tags_text: Optional[str] = None
    selected_tags: list[str] = field(default_factory=list)
    tag_choice_mode: Optional[TagChoiceMode] = None
    tag: Optional[str] = None
    count: Optional[int] = None

    def select_tag(self, tag: str) -> bool:
        """Add tag to the selection, keeping selection order. Returns False if already selected."""
        if tag in self.selected_tags:
            return False
        self.selected_tags.append(tag)
        return True

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "url": self.url,
            "tags_text": self.tags_text,
            "selected_tags": list(self.selected_tags),
            "tag_choice_mode": self.tag_choice_mode.value if self.tag_choice_mode else None,
            "tag": self.tag,
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Draft":
        mode = data.get("tag_choice_mode")
        return cls(
            title=data.get("title"),
            url=data.get("url"),
            tags_text=data.get("tags_text"),
            selected_tags=list(data.get("selected_tags") or []),
            tag_choice_mode=TagChoiceMode(mode) if mode else None,
            tag=data.get("tag"),
            count=data.get("count"),
        )


@dataclass
class Session:
    """
    Pending flow of one conversation.

    A session exists only while a multi-step flow is pending;
    its absence means the conversation is idle.
    """
    step: State
    draft: Draft = field(default_factory=Draft)


@dataclass
class InboundEvent:
    """Text message received from a conversation."""
    conversation_id: int
    message_id: int
    text: str


@dataclass
class ReplyKeyboard:
    """Grid of button labels attached to an outbound prompt."""
    rows: list[list[str]]
    one_time: bool = True       # Collapse after one tap

    @classmethod
    def column(cls, labels: list[str], one_time: bool = True) -> "ReplyKeyboard":
        """One button per row."""
        return cls(rows=[[label] for label in labels], one_time=one_time)
