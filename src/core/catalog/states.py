"""
FSM states for the catalog conversation.
"""

from typing import Optional

from aiogram.fsm.state import State, StatesGroup


class CatalogStates(StatesGroup):
    """Steps of the add and retrieval flows. Idle has no state."""

    # Add flow
    awaiting_password = State()            # Password after "Add Video"
    awaiting_password_for_link = State()   # Password after a pasted link
    awaiting_title = State()               # Title, link comes next
    awaiting_title_for_link = State()      # Title, link already known
    awaiting_url = State()                 # Video link

    # Tags
    choose_tag_mode = State()              # From list or typed
    choosing_tags = State()                # Tapping tags
    awaiting_tags = State()                # Comma-separated tags

    # Retrieval flow
    awaiting_tag = State()                 # Tag to fetch
    awaiting_count = State()               # How many
    post_get_options = State()             # What next


ADD_FLOW_STATES = frozenset({
    CatalogStates.awaiting_password,
    CatalogStates.awaiting_password_for_link,
    CatalogStates.awaiting_title,
    CatalogStates.awaiting_title_for_link,
    CatalogStates.awaiting_url,
    CatalogStates.choose_tag_mode,
    CatalogStates.choosing_tags,
    CatalogStates.awaiting_tags,
})


def resolve_state(name: Optional[str]) -> Optional[State]:
    """Map a stored state name back to its State, None if unknown."""
    if name is None:
        return None
    for state in CatalogStates.__all_states__:
        if state.state == name:
            return state
    return None
