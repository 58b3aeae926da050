"""
Texts, button labels and keyboards of the catalog conversation.
"""

from src.core.catalog.models import ReplyKeyboard


# Buttons
GET_VIDEOS = "📽 Get Videos"
ADD_VIDEO = "➕ Add Video"
ADD_ANOTHER = "➕ Add Another"
MAIN_MENU = "🏠 Main Menu"
CHOOSE_FROM_LIST = "🗂 Choose from List"
TYPE_MY_OWN = "⌨️ Type My Own"
DONE = "✅ Done"
SWITCH_TYPE = "🔄 Switch Type"
SELECT_ANOTHER_TYPE = "🔄 Select Another Training Type"


START_HINT = "(You can always type /start to return to the main menu)"


def with_hint(text: str) -> str:
    return f"{text}\n\n{START_HINT}"


MAIN_MENU_TEXT = "👋 What would you like to do?"
CHOOSE_TAG_TEXT = "Choose a tag:"
NO_TAGS_TEXT = "⚠️ No tags found."
DUPLICATE_TEXT = "⚠️ This video already exists."

LINK_DETECTED_TEXT = with_hint(
    "🔒 Instagram link detected. Please enter the admin password to continue."
)
ENTER_PASSWORD_TEXT = with_hint("🔒 Please enter the admin password.")
WRONG_PASSWORD_TEXT = with_hint("❌ Incorrect password. Please try again.")
PASSWORD_ACCEPTED_TEXT = with_hint("✅ Password accepted.\n\nWhat is the video title?")
ENTER_TITLE_TEXT = with_hint("What is the video title?")
ENTER_URL_TEXT = with_hint("📎 Send the Instagram video URL.")

TAG_MODE_TEXT = "How would you like to enter tags?"
INVALID_OPTION_TEXT = "❌ Please choose a valid option:"
SELECT_TAGS_TEXT = "Select tags (tap multiple). Type ✅ when done."
INVALID_TAG_TEXT = "❌ Invalid tag. Choose from the list or type ✅ when done."
NO_TAGS_SELECTED_TEXT = "⚠️ No tags selected. Please choose at least one."
ENTER_TAGS_TEXT = with_hint("Enter tags separated by commas (e.g. strength, mobility).")
EMPTY_TAGS_TEXT = with_hint("⚠️ Please enter at least one tag.")
VIDEO_ADDED_TEXT = "✅ Video added successfully!\nWhat next?"
VIDEO_ADDED_SHORT_TEXT = "✅ Video added successfully!"

UNKNOWN_TAG_TEXT = "❌ Unknown tag. Please choose one from the list:"
HOW_MANY_TEXT = "How many videos would you like?"
WHAT_NEXT_TEXT = "What next?"
CHOOSE_VALID_OPTION_TEXT = with_hint("Please choose a valid option.")

RETRY_LATER_TEXT = "😔 Something went wrong while talking to the catalog. Please try again."
TAGS_UNAVAILABLE_TEXT = "Tags could not be loaded right now. Send any message to try again."

CLEANING_TEXT = "🧹 Cleaning up the chat..."
CLEANED_TEXT = "✅ Chat cleaned. Type /start to begin again."


def tag_added_text(tag: str) -> str:
    return f'✅ Tag "{tag}" added. Keep going or type ✅ when done.'


def video_text(title: str, url: str) -> str:
    return f"🎬 {title}\n🔗 {url}"


def partial_text(found: int) -> str:
    return f"Only {found} video(s) available."


def not_found_text(tag: str) -> str:
    return f'No videos found for tag "{tag}".'


# Keyboards

def main_menu_keyboard() -> ReplyKeyboard:
    return ReplyKeyboard(rows=[[GET_VIDEOS, ADD_VIDEO]])


def tag_keyboard(tags: list[str]) -> ReplyKeyboard:
    return ReplyKeyboard.column(tags)


def tag_mode_keyboard() -> ReplyKeyboard:
    return ReplyKeyboard(rows=[[CHOOSE_FROM_LIST, TYPE_MY_OWN]])


def tag_selection_keyboard(tags: list[str]) -> ReplyKeyboard:
    """Stays open so several tags can be tapped."""
    return ReplyKeyboard(rows=[[tag] for tag in tags] + [[DONE]], one_time=False)


def count_keyboard(max_count: int) -> ReplyKeyboard:
    return ReplyKeyboard.column([str(i) for i in range(1, max_count + 1)])


def after_add_keyboard() -> ReplyKeyboard:
    return ReplyKeyboard(rows=[[ADD_ANOTHER, MAIN_MENU]])


def switch_type_label(with_menu: bool) -> str:
    return SWITCH_TYPE if with_menu else SELECT_ANOTHER_TYPE


def post_get_keyboard(with_menu: bool) -> ReplyKeyboard:
    row = [switch_type_label(with_menu)]
    if with_menu:
        row.append(MAIN_MENU)
    return ReplyKeyboard(rows=[row])
