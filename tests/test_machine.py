"""
Tests for the conversation state machine.
Covers both entry modes, the add flow, the retrieval flow and failure modes.
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from src.core.catalog import prompts
from src.core.catalog.models import EntryMode, InboundEvent, Session, VideoRecord
from src.core.catalog.contracts import RepositoryError
from src.core.catalog.states import CatalogStates

from conftest import CHAT_ID, LINK, PASSWORD, make_records


async def say(machine, text: str, message_id: int = 100) -> None:
    await machine.handle(InboundEvent(conversation_id=CHAT_ID, message_id=message_id, text=text))


async def step_of(sessions):
    session = await sessions.get(CHAT_ID)
    return session.step if session else None


def videos_sent(gateway) -> list[str]:
    return [text for text in gateway.texts if text.startswith("🎬")]


@pytest.mark.asyncio
class TestLinkGuard:
    """Tests for links pasted outside of an add flow."""

    async def test_new_link_starts_add_flow(self, machine, gateway, sessions):
        await say(machine, LINK)

        session = await sessions.get(CHAT_ID)
        assert session.step == CatalogStates.awaiting_password_for_link
        assert session.draft.url == LINK
        assert gateway.last_text == prompts.LINK_DETECTED_TEXT

    async def test_duplicate_link_warns_without_session(self, machine, gateway, sessions):
        await say(machine, "https://www.instagram.com/reel/1/")

        assert gateway.texts == [prompts.DUPLICATE_TEXT]
        assert await sessions.get(CHAT_ID) is None

    async def test_duplicate_link_keeps_pending_retrieval(self, make_machine, gateway, sessions):
        machine = make_machine(EntryMode.AUTO_START)
        await say(machine, "hello")
        await say(machine, "https://www.instagram.com/reel/1/")

        assert gateway.last_text == prompts.DUPLICATE_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_tag

    async def test_menu_mode_link_during_retrieval_is_step_input(self, machine, repository, gateway, sessions):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, LINK)

        assert "is_duplicate_url" not in repository.calls
        assert gateway.last_text == prompts.UNKNOWN_TAG_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_tag

    async def test_link_inside_add_flow_is_step_input(self, machine, gateway, sessions):
        await say(machine, prompts.ADD_VIDEO)
        await say(machine, LINK)

        # Treated as a wrong password, not as a new flow
        assert gateway.last_text == prompts.WRONG_PASSWORD_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_password


@pytest.mark.asyncio
class TestAddFlow:
    """Tests for adding videos."""

    async def test_list_mode_scenario(self, machine, repository, gateway, sessions):
        await say(machine, LINK)
        await say(machine, PASSWORD, message_id=101)

        assert (CHAT_ID, 101) in gateway.deleted
        assert await step_of(sessions) == CatalogStates.awaiting_title_for_link

        await say(machine, "Leg Day")
        assert await step_of(sessions) == CatalogStates.choose_tag_mode
        assert gateway.last_keyboard == prompts.tag_mode_keyboard()

        await say(machine, prompts.CHOOSE_FROM_LIST)
        assert await step_of(sessions) == CatalogStates.choosing_tags
        keyboard = gateway.last_keyboard
        assert not keyboard.one_time
        assert keyboard.rows == [["strength"], ["mobility"], ["cardio"], [prompts.DONE]]

        await say(machine, "strength")
        await say(machine, "mobility")
        await say(machine, prompts.DONE)

        assert repository.records[-1] == VideoRecord(title="Leg Day", url=LINK, tags="strength,mobility")
        assert await sessions.get(CHAT_ID) is None
        assert gateway.last_text == prompts.VIDEO_ADDED_TEXT
        assert gateway.last_keyboard == prompts.after_add_keyboard()

    async def test_list_selection_deduplicates(self, machine, repository, sessions):
        await say(machine, LINK)
        await say(machine, PASSWORD)
        await say(machine, "Leg Day")
        await say(machine, prompts.CHOOSE_FROM_LIST)
        await say(machine, "Strength")
        await say(machine, "strength")
        await say(machine, "CARDIO")
        await say(machine, prompts.DONE)

        assert repository.records[-1].tags == "strength,cardio"

    async def test_manual_mode_keeps_duplicates(self, machine, repository, gateway, sessions):
        await say(machine, prompts.ADD_VIDEO)
        assert await step_of(sessions) == CatalogStates.awaiting_password

        await say(machine, PASSWORD)
        assert await step_of(sessions) == CatalogStates.awaiting_title

        await say(machine, "Leg Day")
        assert await step_of(sessions) == CatalogStates.awaiting_url

        await say(machine, LINK)
        assert await step_of(sessions) == CatalogStates.choose_tag_mode

        await say(machine, prompts.TYPE_MY_OWN)
        assert await step_of(sessions) == CatalogStates.awaiting_tags

        await say(machine, "Strength, Mobility ,strength")

        assert repository.records[-1] == VideoRecord(
            title="Leg Day", url=LINK, tags="strength,mobility,strength"
        )
        assert await sessions.get(CHAT_ID) is None

    async def test_blank_manual_tags_rejected(self, machine, repository, gateway, sessions):
        await say(machine, LINK)
        await say(machine, PASSWORD)
        await say(machine, "Leg Day")
        await say(machine, prompts.TYPE_MY_OWN)
        count = len(repository.records)

        await say(machine, " , ,")

        assert len(repository.records) == count
        assert gateway.last_text == prompts.EMPTY_TAGS_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_tags

    async def test_wrong_password_reprompts(self, machine, gateway, sessions):
        await say(machine, LINK)
        await say(machine, "guess", message_id=150)

        assert gateway.last_text == prompts.WRONG_PASSWORD_TEXT
        assert gateway.deleted == []
        assert await step_of(sessions) == CatalogStates.awaiting_password_for_link

    async def test_password_deletion_failure_is_swallowed(self, machine, gateway, sessions):
        gateway.undeletable.add(101)
        await say(machine, LINK)
        await say(machine, PASSWORD, message_id=101)

        assert gateway.last_text == prompts.PASSWORD_ACCEPTED_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_title_for_link

    async def test_url_without_marker_reprompts(self, machine, gateway, sessions):
        await say(machine, prompts.ADD_VIDEO)
        await say(machine, PASSWORD)
        await say(machine, "Leg Day")
        await say(machine, "https://youtube.com/watch?v=1")

        assert "valid Instagram link" in gateway.last_text
        assert await step_of(sessions) == CatalogStates.awaiting_url

    async def test_duplicate_url_aborts_flow(self, machine, gateway, sessions):
        await say(machine, prompts.ADD_VIDEO)
        await say(machine, PASSWORD)
        await say(machine, "Leg Day")
        await say(machine, "https://www.instagram.com/reel/2/")

        assert gateway.last_text == prompts.DUPLICATE_TEXT
        assert await sessions.get(CHAT_ID) is None

    async def test_invalid_tag_mode(self, machine, gateway, sessions):
        await say(machine, LINK)
        await say(machine, PASSWORD)
        await say(machine, "Leg Day")
        await say(machine, "both")

        assert gateway.last_text == prompts.INVALID_OPTION_TEXT
        assert gateway.last_keyboard == prompts.tag_mode_keyboard()
        assert await step_of(sessions) == CatalogStates.choose_tag_mode

    async def test_unknown_and_empty_selection_rejected(self, machine, repository, gateway, sessions):
        await say(machine, LINK)
        await say(machine, PASSWORD)
        await say(machine, "Leg Day")
        await say(machine, prompts.CHOOSE_FROM_LIST)

        await say(machine, "yoga")
        assert gateway.last_text == prompts.INVALID_TAG_TEXT
        assert [prompts.DONE] in gateway.last_keyboard.rows

        count = len(repository.records)
        await say(machine, prompts.DONE)
        assert gateway.last_text == prompts.NO_TAGS_SELECTED_TEXT
        assert len(repository.records) == count
        assert await step_of(sessions) == CatalogStates.choosing_tags

    async def test_empty_catalog_falls_back_to_typed_tags(self, machine, repository, gateway, sessions):
        repository.records.clear()
        await say(machine, LINK)
        await say(machine, PASSWORD)
        await say(machine, "First")
        await say(machine, prompts.CHOOSE_FROM_LIST)

        assert prompts.NO_TAGS_TEXT in gateway.texts
        assert await step_of(sessions) == CatalogStates.awaiting_tags

    async def test_add_another_asks_for_password(self, machine, gateway, sessions):
        await say(machine, prompts.ADD_ANOTHER)
        assert gateway.last_text == prompts.ENTER_PASSWORD_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_password


@pytest.mark.asyncio
class TestRetrievalFlow:
    """Tests for getting videos."""

    async def test_retrieval_scenario(self, machine, gateway, sessions):
        await say(machine, prompts.GET_VIDEOS)
        assert await step_of(sessions) == CatalogStates.awaiting_tag
        assert gateway.last_keyboard.rows == [["strength"], ["mobility"], ["cardio"]]

        await say(machine, "strength")
        assert await step_of(sessions) == CatalogStates.awaiting_count
        assert gateway.last_keyboard == prompts.count_keyboard(5)

        await say(machine, "10")
        assert "between 1 and 5" in gateway.last_text
        assert await step_of(sessions) == CatalogStates.awaiting_count

        gateway.clear()
        await say(machine, "3")

        assert len(videos_sent(gateway)) == 2
        assert prompts.partial_text(2) in gateway.texts
        assert gateway.last_text == prompts.WHAT_NEXT_TEXT
        assert await step_of(sessions) == CatalogStates.post_get_options

    @pytest.mark.parametrize("text", ["0", "6", "abc"])
    async def test_count_rejections(self, machine, repository, gateway, sessions, text):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "cardio")
        gateway.clear()

        await say(machine, text)

        assert videos_sent(gateway) == []
        assert await step_of(sessions) == CatalogStates.awaiting_count
        assert "get_videos_by_tag" not in repository.calls

    async def test_exact_count(self, machine, repository, gateway, sessions):
        repository.records = make_records(*[
            (f"Video {i}", f"https://www.instagram.com/reel/s{i}/", "strength") for i in range(5)
        ])
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "strength")
        gateway.clear()

        await say(machine, "3")

        assert len(videos_sent(gateway)) == 3
        assert not any(text.startswith("Only") for text in gateway.texts)
        assert await step_of(sessions) == CatalogStates.post_get_options

    async def test_unknown_tag_rejected(self, machine, gateway, sessions):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "yoga")

        assert gateway.last_text == prompts.UNKNOWN_TAG_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_tag

    async def test_tag_is_case_insensitive(self, machine, sessions):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "Mobility")

        session = await sessions.get(CHAT_ID)
        assert session.step == CatalogStates.awaiting_count
        assert session.draft.tag == "mobility"

    async def test_no_tags_on_file(self, machine, repository, gateway, sessions):
        repository.records.clear()
        await say(machine, prompts.GET_VIDEOS)

        assert gateway.last_text == prompts.NO_TAGS_TEXT
        assert await sessions.get(CHAT_ID) is None

    async def test_switch_type(self, machine, gateway, sessions):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "cardio")
        await say(machine, "1")
        await say(machine, prompts.SWITCH_TYPE)

        session = await sessions.get(CHAT_ID)
        assert session.step == CatalogStates.awaiting_tag
        assert session.draft.tag is None
        assert gateway.last_text == prompts.CHOOSE_TAG_TEXT

    async def test_main_menu_from_post_get(self, machine, gateway, sessions):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "cardio")
        await say(machine, "1")
        assert gateway.last_keyboard == prompts.post_get_keyboard(with_menu=True)

        await say(machine, prompts.MAIN_MENU)

        assert await sessions.get(CHAT_ID) is None
        assert gateway.last_text == prompts.MAIN_MENU_TEXT

    async def test_menu_mode_rejects_auto_start_switch_label(self, machine, gateway, sessions):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "cardio")
        await say(machine, "1")
        await say(machine, prompts.SELECT_ANOTHER_TYPE)

        assert gateway.last_text == prompts.CHOOSE_VALID_OPTION_TEXT
        assert await step_of(sessions) == CatalogStates.post_get_options

    async def test_post_get_rejects_other_text(self, machine, gateway, sessions):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "cardio")
        await say(machine, "1")
        await say(machine, "more please")

        assert gateway.last_text == prompts.CHOOSE_VALID_OPTION_TEXT
        assert await step_of(sessions) == CatalogStates.post_get_options


@pytest.mark.asyncio
class TestEntryModes:
    """Tests for menu and auto-start greetings."""

    async def test_menu_mode_greets_idle(self, machine, gateway, sessions):
        await say(machine, "hello")

        assert gateway.last_text == prompts.MAIN_MENU_TEXT
        assert gateway.last_keyboard == prompts.main_menu_keyboard()
        assert await sessions.get(CHAT_ID) is None

    async def test_auto_start_prompts_tags(self, make_machine, gateway, sessions):
        machine = make_machine(EntryMode.AUTO_START)
        await say(machine, "hello")

        assert gateway.last_text == prompts.CHOOSE_TAG_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_tag

    async def test_auto_start_post_get_options(self, make_machine, gateway, sessions):
        machine = make_machine(EntryMode.AUTO_START)
        await say(machine, "hello")
        await say(machine, "cardio")
        await say(machine, "1")

        assert gateway.last_keyboard == prompts.post_get_keyboard(with_menu=False)

        await say(machine, prompts.MAIN_MENU)
        assert gateway.last_text == prompts.CHOOSE_VALID_OPTION_TEXT
        assert await step_of(sessions) == CatalogStates.post_get_options

        await say(machine, prompts.SWITCH_TYPE)
        assert gateway.last_text == prompts.CHOOSE_VALID_OPTION_TEXT
        assert await step_of(sessions) == CatalogStates.post_get_options

        await say(machine, prompts.SELECT_ANOTHER_TYPE)
        assert await step_of(sessions) == CatalogStates.awaiting_tag

    async def test_auto_start_menu_labels_are_plain_text(self, make_machine, gateway, sessions):
        machine = make_machine(EntryMode.AUTO_START)
        await say(machine, prompts.GET_VIDEOS)

        assert gateway.last_text == prompts.CHOOSE_TAG_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_tag

        await say(machine, prompts.ADD_VIDEO)
        assert gateway.last_text == prompts.UNKNOWN_TAG_TEXT

    async def test_auto_start_link_interrupts_retrieval(self, make_machine, repository, gateway, sessions):
        machine = make_machine(EntryMode.AUTO_START)
        await say(machine, "hello")
        await say(machine, LINK)
        await say(machine, PASSWORD)
        await say(machine, "Leg Day")
        await say(machine, prompts.TYPE_MY_OWN)
        await say(machine, "legs")

        assert repository.records[-1].tags == "legs"
        assert prompts.VIDEO_ADDED_SHORT_TEXT in gateway.texts
        assert gateway.last_text == prompts.CHOOSE_TAG_TEXT
        assert await step_of(sessions) == CatalogStates.awaiting_tag


    async def test_auto_start_tag_reload_failure_after_add(self, make_machine, repository, gateway, sessions):
        machine = make_machine(EntryMode.AUTO_START)
        await say(machine, "hello")
        await say(machine, LINK)
        await say(machine, PASSWORD)
        await say(machine, "Leg Day")
        await say(machine, prompts.TYPE_MY_OWN)

        original = repository.get_all_tags
        repository.get_all_tags = AsyncMock(side_effect=RepositoryError("sheet unavailable"))
        await say(machine, "legs")

        assert repository.records[-1].tags == "legs"
        assert gateway.texts[-2:] == [prompts.VIDEO_ADDED_SHORT_TEXT, prompts.TAGS_UNAVAILABLE_TEXT]
        assert await sessions.get(CHAT_ID) is None

        repository.get_all_tags = original
        await say(machine, "hi")
        assert gateway.last_text == prompts.CHOOSE_TAG_TEXT


@pytest.mark.asyncio
class TestFailureModes:
    """Tests for defensive behaviour."""

    async def test_blank_text_ignored(self, machine, gateway, sessions):
        await say(machine, "   ")
        assert gateway.sent == []

    async def test_unknown_step_is_noop(self, machine, gateway, sessions):
        await sessions.storage.set_state(sessions._key(CHAT_ID), "Old:step")
        await say(machine, "hello")

        assert gateway.sent == []

    async def test_repository_failure_keeps_session(self, machine, repository, gateway, sessions):
        await say(machine, prompts.GET_VIDEOS)
        await say(machine, "strength")
        repository.fail = True

        with pytest.raises(RepositoryError):
            await say(machine, "2")

        session = await sessions.get(CHAT_ID)
        assert session.step == CatalogStates.awaiting_count
        assert session.draft.count is None

    async def test_reset_clears_session(self, machine, gateway, sessions):
        await say(machine, LINK)
        await machine.reset(CHAT_ID)

        assert await sessions.get(CHAT_ID) is None
        assert gateway.last_text == prompts.MAIN_MENU_TEXT

    async def test_reset_clears_unknown_step(self, machine, sessions):
        await sessions.storage.set_state(sessions._key(CHAT_ID), "Old:step")
        await machine.reset(CHAT_ID)
        assert await sessions.get(CHAT_ID) is None

    async def test_same_conversation_events_run_in_order(self, machine, repository, gateway, sessions):
        """A second event waits until the first one has finished its storage calls."""
        original = repository.get_all_tags

        async def slow_tags():
            await asyncio.sleep(0.02)
            return await original()

        repository.get_all_tags = slow_tags
        await sessions.set(CHAT_ID, Session(step=CatalogStates.awaiting_tag))

        await asyncio.gather(say(machine, "cardio"), say(machine, "1"))

        assert len(videos_sent(gateway)) == 1
        assert await step_of(sessions) == CatalogStates.post_get_options
