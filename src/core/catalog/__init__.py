"""
Catalog module for the video bot.
Handles the add and retrieval conversations, tag handling and sampling.
"""

from src.core.catalog.models import (
    Draft,
    EntryMode,
    InboundEvent,
    ReplyKeyboard,
    Session,
    TagChoiceMode,
    VideoRecord,
)
from src.core.catalog.states import CatalogStates
from src.core.catalog.contracts import MessagingGateway, RepositoryError, VideoRepository
from src.core.catalog.sampler import SampleResult, filter_by_tag, sample
from src.core.catalog.tags import normalize_manual_tags, normalize_tags, ordered_tags
from src.core.catalog.session import SessionStore, UnknownStepError
from src.core.catalog.machine import ConversationMachine
from src.core.catalog.cleanup import bulk_clean

__all__ = [
    # Models
    "Draft",
    "EntryMode",
    "InboundEvent",
    "ReplyKeyboard",
    "Session",
    "TagChoiceMode",
    "VideoRecord",
    # States
    "CatalogStates",
    # Contracts
    "MessagingGateway",
    "RepositoryError",
    "VideoRepository",
    # Tags and sampling
    "SampleResult",
    "filter_by_tag",
    "sample",
    "normalize_manual_tags",
    "normalize_tags",
    "ordered_tags",
    # Sessions
    "SessionStore",
    "UnknownStepError",
    # Machine
    "ConversationMachine",
    # Cleanup
    "bulk_clean",
]
