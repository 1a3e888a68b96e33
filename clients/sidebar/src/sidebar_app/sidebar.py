"""Keeps the ordered sidebar in step with a :class:`ReportStore`."""

from __future__ import annotations

import logging
from typing import Callable, List, Tuple

from .names import conversation_label
from .ordering import order_snapshot
from .store import ReportStore, Subscription

logger = logging.getLogger(__name__)

Listener = Callable[[List[str]], None]


class SidebarList:
    """Recomputes the ordered conversation ids whenever the store changes.

    Listeners only hear about recomputes that changed the list. If a
    recompute fails the error reaches whoever mutated the store and the last
    good list stays in place.
    """

    def __init__(self, store: ReportStore) -> None:
        self._store = store
        self._listeners: List[Listener] = []
        self.ordered_ids: List[str] = []
        self.refresh()
        self._subscription: Subscription | None = store.subscribe(self._on_store_change)

    def _on_store_change(self, store: ReportStore) -> None:
        self.refresh()

    def refresh(self) -> List[str]:
        ordered = order_snapshot(self._store.snapshot(), self._store.resolver())
        if ordered != self.ordered_ids:
            logger.debug("sidebar reordered: %s", ordered)
            self.ordered_ids = ordered
            for listener in list(self._listeners):
                listener(list(ordered))
        return list(ordered)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return

    def rows(self) -> List[Tuple[str, str]]:
        """Return ``(conv_id, label)`` for every listed conversation."""

        snapshot = self._store.snapshot()
        resolver = self._store.resolver()
        by_id = {conversation.conv_id: conversation for conversation in snapshot.conversations}
        # ordered_ids can lag the store when the last recompute failed.
        return [
            (conv_id, conversation_label(by_id[conv_id], resolver))
            for conv_id in self.ordered_ids
            if conv_id in by_id
        ]

    def labels(self) -> List[str]:
        return [label for _, label in self.rows()]

    def close(self) -> None:
        if self._subscription is not None:
            self._store.unsubscribe(self._subscription)
            self._subscription = None
