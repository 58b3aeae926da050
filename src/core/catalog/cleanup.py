"""
Bulk chat cleanup for administrators.
"""

import logging

from src.core.catalog.contracts import MessagingGateway

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 200


async def bulk_clean(
    gateway: MessagingGateway,
    conversation_id: int,
    last_message_id: int,
    depth: int = DEFAULT_DEPTH,
) -> int:
    """
    Delete the last `depth` message ids of a conversation, newest first.

    Every deletion is best effort. Ids that no longer exist are skipped.

    Returns:
        Number of messages actually deleted
    """
    lowest = max(last_message_id - depth, 0)
    deleted = 0
    for message_id in range(last_message_id, lowest, -1):
        if await gateway.delete_message(conversation_id, message_id):
            deleted += 1

    logger.info(
        f"Cleaned chat {conversation_id}: deleted {deleted} of "
        f"{last_message_id - lowest} message ids"
    )
    return deleted
