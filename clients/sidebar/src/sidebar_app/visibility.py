from __future__ import annotations

from typing import Iterable, List

from .model import Conversation, ViewerContext


def is_visible(conversation: Conversation, viewer: ViewerContext) -> bool:
    """Return whether ``conversation`` belongs in the list for ``viewer``.

    Capability-gated conversations stay hidden in every mode. Focus mode only
    keeps unread conversations plus the active one; a read conversation drops
    out as soon as another conversation becomes active.
    """

    required = conversation.requires_capability
    if required is not None and required not in viewer.enabled_capabilities:
        return False
    if not viewer.is_focus:
        return True
    return conversation.unread_count > 0 or conversation.conv_id == viewer.active_conversation_id


def visible_conversations(conversations: Iterable[Conversation], viewer: ViewerContext) -> List[Conversation]:
    return [conversation for conversation in conversations if is_visible(conversation, viewer)]
