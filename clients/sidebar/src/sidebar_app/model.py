"""Immutable conversation and viewer records consumed by the sidebar engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple

MODE_DEFAULT = "default"
MODE_FOCUS = "gsd"
DISPLAY_MODES = (MODE_DEFAULT, MODE_FOCUS)
# Names accepted from settings, documents and the command line.
MODE_ALIASES = {"default": MODE_DEFAULT, "focus": MODE_FOCUS, MODE_FOCUS: MODE_FOCUS}

TIER_PINNED = 0
TIER_OUTSTANDING_REQUEST = 1
TIER_HAS_DRAFT = 2
TIER_NORMAL = 3
TIER_NAMES = {
    TIER_PINNED: "pinned",
    TIER_OUTSTANDING_REQUEST: "outstanding_request",
    TIER_HAS_DRAFT: "has_draft",
    TIER_NORMAL: "normal",
}

CAPABILITY_DEFAULT_ROOMS = "defaultRooms"
CAPABILITY_POLICY_ROOMS = "policyRooms"
CAPABILITY_POLICY_EXPENSE_CHAT = "policyExpenseChat"


def normalize_mode(value: str) -> str:
    mode = MODE_ALIASES.get(str(value))
    if mode is None:
        raise ValueError(f"unsupported display mode: {value}")
    return mode


def _distinct(values: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return tuple(seen)


@dataclass(frozen=True)
class Conversation:
    """One chat thread as seen by the viewer at recompute time."""

    conv_id: str
    participants: Tuple[str, ...]
    last_activity_at: int
    has_draft: bool
    is_pinned: bool
    unread_count: int
    is_archived: bool
    requires_capability: Optional[str] = None
    outstanding_request_owner: Optional[str] = None
    title: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.conv_id:
            raise ValueError("conv_id must be non-empty")
        if self.unread_count < 0:
            raise ValueError(f"unread_count must be non-negative for {self.conv_id}")
        # Participants keep their display order; duplicates collapse.
        object.__setattr__(self, "participants", _distinct(self.participants))


@dataclass(frozen=True)
class ViewerContext:
    viewer_id: str
    active_conversation_id: Optional[str] = None
    display_mode: str = MODE_DEFAULT
    enabled_capabilities: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.display_mode not in DISPLAY_MODES:
            raise ValueError(f"unsupported display mode: {self.display_mode}")
        object.__setattr__(self, "enabled_capabilities", frozenset(self.enabled_capabilities))

    @property
    def is_focus(self) -> bool:
        return self.display_mode == MODE_FOCUS


@dataclass(frozen=True)
class Snapshot:
    """A fully merged view of the store handed to one recompute."""

    conversations: Tuple[Conversation, ...]
    viewer: ViewerContext

    def __post_init__(self) -> None:
        conversations = tuple(self.conversations)
        ensure_unique_ids(conversations)
        object.__setattr__(self, "conversations", conversations)


def ensure_unique_ids(conversations: Iterable[Conversation]) -> None:
    seen = set()
    for conversation in conversations:
        if conversation.conv_id in seen:
            raise ValueError(f"duplicate conversation id: {conversation.conv_id}")
        seen.add(conversation.conv_id)


def effective_viewer(conversations: Iterable[Conversation], viewer: ViewerContext) -> ViewerContext:
    """Drop an active conversation id that does not exist in ``conversations``."""

    active_id = viewer.active_conversation_id
    if active_id is None:
        return viewer
    if any(conversation.conv_id == active_id for conversation in conversations):
        return viewer
    return ViewerContext(
        viewer_id=viewer.viewer_id,
        active_conversation_id=None,
        display_mode=viewer.display_mode,
        enabled_capabilities=viewer.enabled_capabilities,
    )
