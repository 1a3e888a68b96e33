"""In-memory report store that notifies subscribers on every change.

Reports are kept as plain records using the client's camelCase keys. A merge
with a ``None`` value deletes the field, so it falls back to its default when
the record is turned into a :class:`~sidebar_app.model.Conversation`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from .model import MODE_DEFAULT, Conversation, Snapshot, ViewerContext, normalize_mode
from .names import PersonalDetailsResolver

logger = logging.getLogger(__name__)

VIEWER_FIELDS = ("viewer_id", "active_conversation_id", "display_mode", "enabled_capabilities")


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def conversation_from_record(record: Mapping[str, Any]) -> Conversation:
    """Build a :class:`Conversation` from a stored report record."""

    conv_id = record.get("reportID")
    if conv_id is None or str(conv_id) == "":
        raise ValueError("report record is missing reportID")
    participants = record.get("participants") or []
    if isinstance(participants, str) or not isinstance(participants, (list, tuple)):
        raise ValueError(f"participants must be a list for report {conv_id}")
    try:
        last_activity_at = int(record.get("lastMessageTimestamp") or 0)
        unread_count = int(record.get("unreadActionCount") or 0)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid numeric field on report {conv_id}: {exc}") from exc
    return Conversation(
        conv_id=str(conv_id),
        participants=tuple(str(user_id) for user_id in participants),
        last_activity_at=last_activity_at,
        has_draft=bool(record.get("hasDraft")),
        is_pinned=bool(record.get("isPinned")),
        unread_count=unread_count,
        is_archived=bool(record.get("isArchived")),
        requires_capability=_optional_str(record.get("requiredCapability")),
        outstanding_request_owner=_optional_str(record.get("iouOwner")),
        title=_optional_str(record.get("reportName")),
    )


def record_from_conversation(conversation: Conversation) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "reportID": conversation.conv_id,
        "participants": list(conversation.participants),
        "lastMessageTimestamp": conversation.last_activity_at,
        "hasDraft": conversation.has_draft,
        "isPinned": conversation.is_pinned,
        "unreadActionCount": conversation.unread_count,
        "isArchived": conversation.is_archived,
    }
    if conversation.requires_capability is not None:
        record["requiredCapability"] = conversation.requires_capability
    if conversation.outstanding_request_owner is not None:
        record["iouOwner"] = conversation.outstanding_request_owner
    if conversation.title is not None:
        record["reportName"] = conversation.title
    return record


def _personal_details(details: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    converted = {}
    for user_id, value in details.items():
        if not isinstance(value, Mapping):
            raise ValueError(f"personal details for {user_id} must be a mapping")
        converted[str(user_id)] = dict(value)
    return converted


Callback = Callable[["ReportStore"], None]


@dataclass
class Subscription:
    callback: Callback

    def deliver(self, store: "ReportStore") -> None:
        self.callback(store)


class ReportStore:
    """Holds reports, personal details and viewer settings."""

    def __init__(self, viewer_id: str = "") -> None:
        self._reports: Dict[str, Dict[str, Any]] = {}
        self._personal_details: Dict[str, Dict[str, Any]] = {}
        self._viewer: Dict[str, Any] = {}
        self._default_viewer_id = viewer_id
        self._subscriptions: List[Subscription] = []
        self._reset_viewer()

    def _reset_viewer(self) -> None:
        self._viewer = {
            "viewer_id": self._default_viewer_id,
            "active_conversation_id": None,
            "display_mode": MODE_DEFAULT,
            "enabled_capabilities": frozenset(),
        }

    # subscriptions

    def subscribe(self, callback: Callback) -> Subscription:
        subscription = Subscription(callback=callback)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            return

    def _notify(self, reason: str) -> None:
        """Deliver to every subscriber, then re-raise the first failure."""

        logger.debug("store changed (%s); notifying %d subscriber(s)", reason, len(self._subscriptions))
        first_error: Optional[Exception] = None
        for subscription in list(self._subscriptions):
            try:
                subscription.deliver(self)
            except Exception as exc:
                logger.debug("subscriber failed after %s: %s", reason, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    # reports

    def report(self, conv_id: str) -> Optional[Dict[str, Any]]:
        record = self._reports.get(conv_id)
        return dict(record) if record is not None else None

    def _store_report(self, conv_id: str, record: Dict[str, Any]) -> None:
        record["reportID"] = conv_id
        conversation_from_record(record)
        self._reports[conv_id] = record

    def set_report(self, conv_id: str, fields: Mapping[str, Any]) -> None:
        record = {key: value for key, value in fields.items() if value is not None}
        self._store_report(str(conv_id), record)
        self._notify(f"set report {conv_id}")

    def merge_report(self, conv_id: str, fields: Mapping[str, Any]) -> None:
        record = dict(self._reports.get(str(conv_id), {}))
        for key, value in fields.items():
            if value is None:
                record.pop(key, None)
            else:
                record[key] = value
        self._store_report(str(conv_id), record)
        self._notify(f"merge report {conv_id}")

    def remove_report(self, conv_id: str) -> None:
        if self._reports.pop(str(conv_id), None) is None:
            return
        self._notify(f"remove report {conv_id}")

    # personal details

    def set_personal_details(self, details: Mapping[str, Mapping[str, Any]]) -> None:
        self._personal_details = _personal_details(details)
        self._notify("set personal details")

    def merge_personal_details(self, details: Mapping[str, Mapping[str, Any]]) -> None:
        for user_id, value in _personal_details(details).items():
            merged = dict(self._personal_details.get(user_id, {}))
            merged.update(value)
            self._personal_details[user_id] = merged
        self._notify("merge personal details")

    # viewer settings

    def _updated_viewer(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = set(fields) - set(VIEWER_FIELDS)
        if unknown:
            raise ValueError(f"unknown viewer field(s): {', '.join(sorted(unknown))}")
        updated = dict(self._viewer)
        for key, value in fields.items():
            if key == "enabled_capabilities":
                value = frozenset(value or ())
            elif key == "active_conversation_id":
                value = _optional_str(value)
            elif key == "display_mode":
                value = MODE_DEFAULT if value is None else normalize_mode(value)
            updated[key] = value
        ViewerContext(**updated)
        return updated

    def set_viewer(self, **fields: Any) -> None:
        self._viewer = self._updated_viewer(fields)
        self._notify("set viewer")

    @property
    def viewer(self) -> ViewerContext:
        return ViewerContext(**self._viewer)

    # batches

    def multi_set(
        self,
        reports: Optional[Mapping[str, Mapping[str, Any]]] = None,
        personal_details: Optional[Mapping[str, Mapping[str, Any]]] = None,
        **viewer_fields: Any,
    ) -> None:
        """Apply several updates and notify once."""

        pending: Dict[str, Dict[str, Any]] = {}
        for conv_id, fields in (reports or {}).items():
            record = {key: value for key, value in fields.items() if value is not None}
            record["reportID"] = str(conv_id)
            conversation_from_record(record)
            pending[str(conv_id)] = record
        viewer = self._updated_viewer(viewer_fields) if viewer_fields else self._viewer
        details = _personal_details(personal_details) if personal_details is not None else self._personal_details

        self._viewer = viewer
        self._personal_details = details
        self._reports.update(pending)
        self._notify("multi set")

    def clear(self) -> None:
        self._reports.clear()
        self._personal_details.clear()
        self._reset_viewer()
        self._notify("clear")

    # views

    def snapshot(self) -> Snapshot:
        conversations = tuple(conversation_from_record(record) for record in self._reports.values())
        return Snapshot(conversations=conversations, viewer=self.viewer)

    def resolver(self) -> PersonalDetailsResolver:
        return PersonalDetailsResolver(self._personal_details)
