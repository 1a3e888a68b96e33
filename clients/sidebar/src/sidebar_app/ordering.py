"""Ordering engine for the conversation sidebar.

Every call recomputes the list from scratch:

1. filter the universe through :func:`sidebar_app.visibility.is_visible`;
2. split the candidates into non-archived and archived groups;
3. in default mode, bucket each group by tier (pinned, outstanding request,
   draft, normal). Drafts sort by display name, the other tiers by most
   recent activity;
4. in focus mode, sort each group by display name only;
5. return the non-archived ids followed by the archived ids.

Ties always fall back to the conversation id so the output is a total order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .model import (
    TIER_HAS_DRAFT,
    TIER_NAMES,
    Conversation,
    Snapshot,
    ViewerContext,
    effective_viewer,
    ensure_unique_ids,
)
from .names import DisplayNameResolver, collation_key, conversation_label
from .tiers import classify
from .visibility import visible_conversations

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderedEntry:
    conv_id: str
    tier: int
    archived: bool
    label: Optional[str]

    @property
    def tier_name(self) -> str:
        return TIER_NAMES[self.tier]


class _Labels:
    """Per-call label cache so each conversation is resolved at most once."""

    def __init__(self, resolver: DisplayNameResolver) -> None:
        self._resolver = resolver
        self._labels: Dict[str, str] = {}

    def get(self, conversation: Conversation) -> str:
        label = self._labels.get(conversation.conv_id)
        if label is None:
            label = conversation_label(conversation, self._resolver)
            self._labels[conversation.conv_id] = label
        return label

    def cached(self, conv_id: str) -> Optional[str]:
        return self._labels.get(conv_id)


def _by_recency(conversation: Conversation) -> Tuple[int, str]:
    return -conversation.last_activity_at, conversation.conv_id


def _by_name(labels: _Labels) -> Callable[[Conversation], Tuple[Tuple[str, str], str]]:
    def key(conversation: Conversation) -> Tuple[Tuple[str, str], str]:
        return collation_key(labels.get(conversation)), conversation.conv_id

    return key


def _order_group(
    group: Sequence[Conversation],
    viewer: ViewerContext,
    labels: _Labels,
    tiers: Dict[str, int],
) -> List[Conversation]:
    if viewer.is_focus:
        return sorted(group, key=_by_name(labels))

    buckets: Dict[int, List[Conversation]] = {}
    for conversation in group:
        buckets.setdefault(tiers[conversation.conv_id], []).append(conversation)

    ordered: List[Conversation] = []
    for tier in sorted(buckets):
        bucket = buckets[tier]
        if tier == TIER_HAS_DRAFT:
            ordered.extend(sorted(bucket, key=_by_name(labels)))
        else:
            ordered.extend(sorted(bucket, key=_by_recency))
        logger.debug("tier %s holds %d conversation(s)", TIER_NAMES[tier], len(bucket))
    return ordered


def _ordered(
    conversations: Iterable[Conversation],
    viewer: ViewerContext,
    resolver: DisplayNameResolver,
) -> Tuple[List[Conversation], Dict[str, int], _Labels]:
    universe = list(conversations)
    ensure_unique_ids(universe)
    viewer = effective_viewer(universe, viewer)

    candidates = visible_conversations(universe, viewer)
    active = [conversation for conversation in candidates if not conversation.is_archived]
    archived = [conversation for conversation in candidates if conversation.is_archived]
    logger.debug(
        "ordering %d visible of %d conversation(s) (%d archived, mode=%s)",
        len(candidates),
        len(universe),
        len(archived),
        viewer.display_mode,
    )

    tiers = {conversation.conv_id: classify(conversation, viewer) for conversation in candidates}
    labels = _Labels(resolver)
    ordered = _order_group(active, viewer, labels, tiers) + _order_group(archived, viewer, labels, tiers)
    return ordered, tiers, labels


def order_conversations(
    conversations: Iterable[Conversation],
    viewer: ViewerContext,
    resolver: DisplayNameResolver,
) -> List[str]:
    """Return the ids of the visible conversations in sidebar order."""

    ordered, _, _ = _ordered(conversations, viewer, resolver)
    return [conversation.conv_id for conversation in ordered]


def order_snapshot(snapshot: Snapshot, resolver: DisplayNameResolver) -> List[str]:
    return order_conversations(snapshot.conversations, snapshot.viewer, resolver)


def explain_order(
    conversations: Iterable[Conversation],
    viewer: ViewerContext,
    resolver: DisplayNameResolver,
) -> List[OrderedEntry]:
    """Same order as :func:`order_conversations` with the tier and label used.

    ``label`` is only filled in for conversations whose position depended on
    their display name.
    """

    ordered, tiers, labels = _ordered(conversations, viewer, resolver)
    return [
        OrderedEntry(
            conv_id=conversation.conv_id,
            tier=tiers[conversation.conv_id],
            archived=conversation.is_archived,
            label=labels.cached(conversation.conv_id),
        )
        for conversation in ordered
    ]
