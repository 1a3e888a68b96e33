"""Conversation sidebar ordering and visibility engine."""

from .model import (
    MODE_DEFAULT,
    MODE_FOCUS,
    TIER_HAS_DRAFT,
    TIER_NORMAL,
    TIER_OUTSTANDING_REQUEST,
    TIER_PINNED,
    Conversation,
    Snapshot,
    ViewerContext,
)
from .names import DisplayNameResolver, PersonalDetailsResolver, ResolutionError
from .ordering import OrderedEntry, explain_order, order_conversations, order_snapshot
from .sidebar import SidebarList
from .store import ReportStore
from .tiers import classify
from .visibility import is_visible

__all__ = [
    "MODE_DEFAULT",
    "MODE_FOCUS",
    "TIER_HAS_DRAFT",
    "TIER_NORMAL",
    "TIER_OUTSTANDING_REQUEST",
    "TIER_PINNED",
    "Conversation",
    "Snapshot",
    "ViewerContext",
    "DisplayNameResolver",
    "PersonalDetailsResolver",
    "ResolutionError",
    "OrderedEntry",
    "explain_order",
    "order_conversations",
    "order_snapshot",
    "SidebarList",
    "ReportStore",
    "classify",
    "is_visible",
]
