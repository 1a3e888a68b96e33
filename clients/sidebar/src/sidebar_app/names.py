"""Display-name resolution for sidebar rows.

The engine only needs names where they decide order (the draft tier and focus
mode). Names come from a personal-details registry keyed by user id, the same
shape the chat client keeps in its local store::

    {"email1@test.com": {"displayName": "One Lastname", "firstName": "One"}}
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Tuple

from .model import Conversation

ARCHIVED_SUFFIX = " (archived)"


class ResolutionError(LookupError):
    """Raised when a conversation has no resolvable display name."""


class DisplayNameResolver:
    """Maps an ordered set of participant ids to a sortable label."""

    def resolve(self, participant_ids: Iterable[str]) -> str:
        raise NotImplementedError


class PersonalDetailsResolver(DisplayNameResolver):
    def __init__(self, personal_details: Mapping[str, Mapping[str, Any]]) -> None:
        self._details: Dict[str, Mapping[str, Any]] = dict(personal_details)

    def resolve(self, participant_ids: Iterable[str]) -> str:
        participants = list(participant_ids)
        if not participants:
            raise ResolutionError("conversation has no participants to name")
        if len(participants) == 1:
            return self._name_for(participants[0], ("displayName", "firstName"))
        # Group rows show first names only.
        return ", ".join(self._name_for(user_id, ("firstName", "displayName")) for user_id in participants)

    def _name_for(self, user_id: str, keys: Tuple[str, ...]) -> str:
        details = self._details.get(user_id)
        if details is None:
            raise ResolutionError(f"no personal details for {user_id}")
        for key in keys:
            value = details.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        raise ResolutionError(f"no display name for {user_id}")


def conversation_label(conversation: Conversation, resolver: DisplayNameResolver) -> str:
    """Return the label the list row shows for ``conversation``."""

    if conversation.title:
        if conversation.is_archived:
            return conversation.title + ARCHIVED_SUFFIX
        return conversation.title
    return resolver.resolve(conversation.participants)


def collation_key(label: str) -> Tuple[str, str]:
    return label.casefold(), label
