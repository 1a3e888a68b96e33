"""Read and write JSON snapshot documents.

A document carries everything one recompute needs::

    {
      "viewer": {"viewer_id": "email9@test.com", "display_mode": "default"},
      "personalDetails": {"email1@test.com": {"displayName": "One", "firstName": "One"}},
      "reports": {"report_1": {"reportID": "1", "participants": ["email1@test.com"]}}
    }

``reports`` may also be a plain list of records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .model import Snapshot
from .names import PersonalDetailsResolver
from .settings import atomic_write_json, viewer_from_settings
from .store import conversation_from_record, record_from_conversation

REPORT_KEY_PREFIX = "report_"


@dataclass(frozen=True)
class SnapshotDocument:
    snapshot: Snapshot
    personal_details: Dict[str, Dict[str, Any]]

    def resolver(self) -> PersonalDetailsResolver:
        return PersonalDetailsResolver(self.personal_details)


def report_key(conv_id: str) -> str:
    return f"{REPORT_KEY_PREFIX}{conv_id}"


def _records(reports: Any) -> list:
    if isinstance(reports, list):
        return list(reports)
    if not isinstance(reports, dict):
        raise ValueError("reports must be a list or an object keyed by report_<id>")

    records = []
    for key, record in reports.items():
        if not key.startswith(REPORT_KEY_PREFIX):
            raise ValueError(f"unexpected report key: {key}")
        if not isinstance(record, dict):
            raise ValueError(f"report {key} must be an object")
        conv_id = key[len(REPORT_KEY_PREFIX) :]
        declared = record.get("reportID")
        if declared is not None and str(declared) != conv_id:
            raise ValueError(f"report {key} declares reportID {declared}")
        records.append({**record, "reportID": conv_id})
    return records


def parse_snapshot(payload: Any, defaults: Optional[Mapping[str, Any]] = None) -> SnapshotDocument:
    """Build a :class:`SnapshotDocument` from decoded JSON.

    Viewer fields missing from the document are taken from ``defaults``
    (usually the persisted settings).
    """

    if not isinstance(payload, dict):
        raise ValueError("snapshot document must be a JSON object")

    viewer_fields: Dict[str, Any] = dict(defaults or {})
    viewer_section = payload.get("viewer")
    if viewer_section is None:
        viewer_section = {}
    if not isinstance(viewer_section, dict):
        raise ValueError("viewer must be an object")
    viewer_fields.update({key: value for key, value in viewer_section.items() if value is not None})

    personal_details = payload.get("personalDetails")
    if personal_details is None:
        personal_details = {}
    if not isinstance(personal_details, dict):
        raise ValueError("personalDetails must be an object")
    for user_id, details in personal_details.items():
        if not isinstance(details, dict):
            raise ValueError(f"personal details for {user_id} must be an object")

    conversations = []
    reports = payload.get("reports")
    for record in _records([] if reports is None else reports):
        if not isinstance(record, dict):
            raise ValueError("report records must be objects")
        conversations.append(conversation_from_record(record))

    active_id = viewer_fields.get("active_conversation_id")
    viewer = viewer_from_settings(viewer_fields, None if active_id is None else str(active_id))
    return SnapshotDocument(
        snapshot=Snapshot(conversations=tuple(conversations), viewer=viewer),
        personal_details={str(key): dict(value) for key, value in personal_details.items()},
    )


def load_snapshot(path: Path | str, defaults: Optional[Mapping[str, Any]] = None) -> SnapshotDocument:
    try:
        payload = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"snapshot {path} is not valid JSON: {exc}") from exc
    return parse_snapshot(payload, defaults)


def dump_snapshot(document: SnapshotDocument, path: Path | str) -> None:
    viewer = document.snapshot.viewer
    payload = {
        "viewer": {
            "viewer_id": viewer.viewer_id,
            "active_conversation_id": viewer.active_conversation_id,
            "display_mode": viewer.display_mode,
            "enabled_capabilities": sorted(viewer.enabled_capabilities),
        },
        "personalDetails": document.personal_details,
        "reports": {
            report_key(conversation.conv_id): record_from_conversation(conversation)
            for conversation in document.snapshot.conversations
        },
    }
    atomic_write_json(Path(path), payload)
