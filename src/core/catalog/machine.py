"""
Conversation state machine for the video catalog.

Interprets free-text chat input against the current step of the
conversation, validates it, calls the repository and emits the next prompt.
One machine serves both entry modes; the mode only changes what an idle
conversation sees and what is offered after a retrieval.
"""

import logging
from typing import Awaitable, Callable, Optional

from aiogram.fsm.state import State

from src.core.catalog import prompts
from src.core.catalog.contracts import MessagingGateway, RepositoryError, VideoRepository
from src.core.catalog.models import (
    Draft,
    EntryMode,
    InboundEvent,
    Session,
    TagChoiceMode,
)
from src.core.catalog.session import SessionStore, UnknownStepError
from src.core.catalog.states import ADD_FLOW_STATES, CatalogStates
from src.core.catalog.tags import normalize_manual_tags
from src.core.catalog.validators import (
    CountValidator,
    LinkValidator,
    PasswordValidator,
    TitleValidator,
)

logger = logging.getLogger(__name__)

StepHandler = Callable[[InboundEvent, str, Session], Awaitable[None]]


class ConversationMachine:
    """Dispatches inbound text events per conversation."""

    def __init__(
        self,
        repository: VideoRepository,
        gateway: MessagingGateway,
        sessions: SessionStore,
        admin_password: str,
        entry_mode: EntryMode = EntryMode.MENU,
        link_marker: str = LinkValidator.DEFAULT_MARKER,
        max_videos: int = CountValidator.MAX_COUNT,
    ):
        self.repository = repository
        self.gateway = gateway
        self.sessions = sessions
        self.entry_mode = entry_mode
        self.max_videos = max_videos
        self.password = PasswordValidator(admin_password)
        self.links = LinkValidator(link_marker)

        self._handlers: dict[State, StepHandler] = {
            CatalogStates.awaiting_password: self._on_password,
            CatalogStates.awaiting_password_for_link: self._on_password,
            CatalogStates.awaiting_title: self._on_title,
            CatalogStates.awaiting_title_for_link: self._on_title,
            CatalogStates.awaiting_url: self._on_url,
            CatalogStates.choose_tag_mode: self._on_tag_mode,
            CatalogStates.choosing_tags: self._on_choosing_tags,
            CatalogStates.awaiting_tags: self._on_typed_tags,
            CatalogStates.awaiting_tag: self._on_tag,
            CatalogStates.awaiting_count: self._on_count,
            CatalogStates.post_get_options: self._on_post_get,
        }

    @property
    def menu_mode(self) -> bool:
        return self.entry_mode is EntryMode.MENU

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    async def handle(self, event: InboundEvent) -> None:
        """
        Handle one inbound text event.

        Events of the same conversation are processed one at a time.
        Repository failures propagate, apart from the tag reload that follows
        an added video. The stored session is only written after the
        repository calls of the event succeeded.
        """
        text = event.text.strip()
        if not text:
            return

        async with self.sessions.lock(event.conversation_id):
            try:
                session = await self.sessions.get(event.conversation_id)
            except UnknownStepError as e:
                logger.warning(f"Ignoring event in {event.conversation_id}: {e}")
                return

            await self._dispatch(event, text, session)

    async def reset(self, conversation_id: int) -> None:
        """Drop any pending flow and greet the conversation as idle."""
        async with self.sessions.lock(conversation_id):
            await self.sessions.delete(conversation_id)
            await self._greet(conversation_id)

    # =========================================================================
    # DISPATCH
    # =========================================================================

    async def _dispatch(
        self, event: InboundEvent, text: str, session: Optional[Session]
    ) -> None:
        cid = event.conversation_id

        if self.menu_mode and text == prompts.MAIN_MENU:
            await self._show_main_menu(cid)
            return

        if self.links.is_link(text) and self._link_starts_flow(session):
            await self._start_link_flow(cid, text)
            return

        if self.menu_mode:
            if text == prompts.GET_VIDEOS:
                await self._start_retrieval(cid)
                return
            if text in (prompts.ADD_VIDEO, prompts.ADD_ANOTHER):
                await self.sessions.set(cid, Session(step=CatalogStates.awaiting_password))
                await self.gateway.deliver(cid, prompts.ENTER_PASSWORD_TEXT)
                return

        if session is None:
            await self._greet(cid)
            return

        handler = self._handlers.get(session.step)
        if handler is None:
            logger.warning(f"No handler for step {session.step.state} in {cid}, ignoring")
            return

        await handler(event, text, session)

    def _link_starts_flow(self, session: Optional[Session]) -> bool:
        if session is None:
            return True
        # Auto-start chats always hold a retrieval session
        return not self.menu_mode and session.step not in ADD_FLOW_STATES

    async def _greet(self, cid: int) -> None:
        if self.menu_mode:
            await self._show_main_menu(cid)
        else:
            await self._start_retrieval(cid)

    async def _show_main_menu(self, cid: int) -> None:
        await self.sessions.delete(cid)
        await self.gateway.deliver(cid, prompts.MAIN_MENU_TEXT, prompts.main_menu_keyboard())

    # =========================================================================
    # ADD FLOW
    # =========================================================================

    async def _start_link_flow(self, cid: int, url: str) -> None:
        if await self.repository.is_duplicate_url(url):
            logger.info(f"Duplicate link from {cid}: {url}")
            await self.gateway.deliver(cid, prompts.DUPLICATE_TEXT)
            return

        session = Session(step=CatalogStates.awaiting_password_for_link, draft=Draft(url=url))
        await self.sessions.set(cid, session)
        await self.gateway.deliver(cid, prompts.LINK_DETECTED_TEXT)

    async def _on_password(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        if not self.password.check(text):
            logger.debug(f"Wrong password from {cid}")
            await self.gateway.deliver(cid, prompts.WRONG_PASSWORD_TEXT)
            return

        # Remove the message carrying the password
        await self.gateway.delete_message(cid, event.message_id)

        if session.step == CatalogStates.awaiting_password_for_link:
            session.step = CatalogStates.awaiting_title_for_link
        else:
            session.step = CatalogStates.awaiting_title
        await self.sessions.set(cid, session)
        await self.gateway.deliver(cid, prompts.PASSWORD_ACCEPTED_TEXT)

    async def _on_title(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        is_valid, title, error = TitleValidator.validate(text)
        if not is_valid:
            await self.gateway.deliver(cid, prompts.with_hint(error))
            return

        session.draft.title = title

        if session.step == CatalogStates.awaiting_title_for_link:
            await self._ask_tag_mode(cid, session)
        else:
            session.step = CatalogStates.awaiting_url
            await self.sessions.set(cid, session)
            await self.gateway.deliver(cid, prompts.ENTER_URL_TEXT)

    async def _on_url(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        is_valid, url, error = self.links.validate(text)
        if not is_valid:
            await self.gateway.deliver(cid, prompts.with_hint(error))
            return

        if await self.repository.is_duplicate_url(url):
            logger.info(f"Duplicate link from {cid}: {url}")
            await self.sessions.delete(cid)
            await self.gateway.deliver(cid, prompts.DUPLICATE_TEXT)
            return

        session.draft.url = url
        await self._ask_tag_mode(cid, session)

    async def _ask_tag_mode(self, cid: int, session: Session) -> None:
        session.step = CatalogStates.choose_tag_mode
        await self.sessions.set(cid, session)
        await self.gateway.deliver(cid, prompts.TAG_MODE_TEXT, prompts.tag_mode_keyboard())

    async def _on_tag_mode(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        if text == prompts.CHOOSE_FROM_LIST:
            tags = await self.repository.get_all_tags()
            if not tags:
                # Nothing to pick from yet
                await self.gateway.deliver(cid, prompts.NO_TAGS_TEXT)
                await self._ask_typed_tags(cid, session)
                return

            session.draft.selected_tags = []
            session.draft.tag_choice_mode = TagChoiceMode.LIST
            session.step = CatalogStates.choosing_tags
            await self.sessions.set(cid, session)
            await self.gateway.deliver(
                cid, prompts.SELECT_TAGS_TEXT, prompts.tag_selection_keyboard(tags)
            )
            return

        if text == prompts.TYPE_MY_OWN:
            await self._ask_typed_tags(cid, session)
            return

        await self.gateway.deliver(cid, prompts.INVALID_OPTION_TEXT, prompts.tag_mode_keyboard())

    async def _ask_typed_tags(self, cid: int, session: Session) -> None:
        session.draft.tag_choice_mode = TagChoiceMode.MANUAL
        session.step = CatalogStates.awaiting_tags
        await self.sessions.set(cid, session)
        await self.gateway.deliver(cid, prompts.ENTER_TAGS_TEXT)

    async def _on_choosing_tags(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        if text == prompts.DONE:
            if not session.draft.selected_tags:
                await self.gateway.deliver(cid, prompts.NO_TAGS_SELECTED_TEXT)
                return
            await self._add_video(cid, session, ",".join(session.draft.selected_tags))
            return

        known = await self.repository.get_all_tags()
        token = text.lower()

        if token not in known:
            logger.debug(f"Unknown tag {token!r} from {cid}")
            await self.gateway.deliver(
                cid, prompts.INVALID_TAG_TEXT, prompts.tag_selection_keyboard(known)
            )
            return

        if session.draft.select_tag(token):
            await self.sessions.set(cid, session)
        await self.gateway.deliver(cid, prompts.tag_added_text(text))

    async def _on_typed_tags(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        # Typed tags keep repeated tokens, only list selection de-duplicates
        tags = normalize_manual_tags(text)
        if not tags:
            await self.gateway.deliver(cid, prompts.EMPTY_TAGS_TEXT)
            return

        session.draft.tags_text = tags
        await self._add_video(cid, session, tags)

    async def _add_video(self, cid: int, session: Session, tags: str) -> None:
        draft = session.draft
        await self.repository.add_video(draft.title, draft.url, tags)
        logger.info(f"Video added by {cid}: {draft.url} [{tags}]")

        await self.sessions.delete(cid)

        if self.menu_mode:
            await self.gateway.deliver(cid, prompts.VIDEO_ADDED_TEXT, prompts.after_add_keyboard())
        else:
            await self.gateway.deliver(cid, prompts.VIDEO_ADDED_SHORT_TEXT)
            try:
                await self._start_retrieval(cid)
            except RepositoryError:
                logger.exception(f"Could not load tags for {cid} after adding a video")
                await self.gateway.deliver(cid, prompts.TAGS_UNAVAILABLE_TEXT)

    # =========================================================================
    # RETRIEVAL FLOW
    # =========================================================================

    async def _start_retrieval(self, cid: int) -> None:
        tags = await self.repository.get_all_tags()
        if not tags:
            await self.sessions.delete(cid)
            await self.gateway.deliver(cid, prompts.NO_TAGS_TEXT)
            return

        await self.sessions.set(cid, Session(step=CatalogStates.awaiting_tag))
        await self.gateway.deliver(cid, prompts.CHOOSE_TAG_TEXT, prompts.tag_keyboard(tags))

    async def _on_tag(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        known = await self.repository.get_all_tags()
        token = text.lower()

        if token not in known:
            logger.debug(f"Unknown tag {token!r} from {cid}")
            await self.gateway.deliver(cid, prompts.UNKNOWN_TAG_TEXT, prompts.tag_keyboard(known))
            return

        session.draft.tag = token
        session.step = CatalogStates.awaiting_count
        await self.sessions.set(cid, session)
        await self.gateway.deliver(
            cid, prompts.HOW_MANY_TEXT, prompts.count_keyboard(self.max_videos)
        )

    async def _on_count(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        is_valid, count, error = CountValidator.validate(text, self.max_videos)
        if not is_valid:
            await self.gateway.deliver(cid, error, prompts.count_keyboard(self.max_videos))
            return

        tag = session.draft.tag
        result = await self.repository.get_videos_by_tag(tag, count)
        logger.info(f"Sent {len(result)}/{count} videos for {tag!r} to {cid}")

        session.draft.count = count
        session.step = CatalogStates.post_get_options
        await self.sessions.set(cid, session)

        if not result:
            await self.gateway.deliver(cid, prompts.not_found_text(tag))
        for record in result:
            await self.gateway.deliver(cid, prompts.video_text(record.title, record.url))
        if result and result.partial:
            await self.gateway.deliver(cid, prompts.partial_text(len(result)))

        await self.gateway.deliver(
            cid, prompts.WHAT_NEXT_TEXT, prompts.post_get_keyboard(self.menu_mode)
        )

    async def _on_post_get(self, event: InboundEvent, text: str, session: Session) -> None:
        cid = event.conversation_id

        if text == prompts.switch_type_label(self.menu_mode):
            await self._start_retrieval(cid)
            return

        await self.gateway.deliver(
            cid, prompts.CHOOSE_VALID_OPTION_TEXT, prompts.post_get_keyboard(self.menu_mode)
        )
