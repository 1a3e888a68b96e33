from __future__ import annotations

from .model import (
    TIER_HAS_DRAFT,
    TIER_NORMAL,
    TIER_OUTSTANDING_REQUEST,
    TIER_PINNED,
    Conversation,
    ViewerContext,
)


def has_outstanding_request(conversation: Conversation, viewer: ViewerContext) -> bool:
    owner = conversation.outstanding_request_owner
    return owner is not None and owner != viewer.viewer_id


def classify(conversation: Conversation, viewer: ViewerContext) -> int:
    """Return the priority tier of ``conversation``; the first match wins."""

    if conversation.is_pinned:
        return TIER_PINNED
    if has_outstanding_request(conversation, viewer):
        return TIER_OUTSTANDING_REQUEST
    # Draft state is per conversation, so focus on it does not matter here.
    if conversation.has_draft:
        return TIER_HAS_DRAFT
    return TIER_NORMAL
