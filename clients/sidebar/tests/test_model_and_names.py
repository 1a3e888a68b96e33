import unittest

from helpers.fake_reports import FIVE_SIX, ONE_TWO, fake_conversation, fake_personal_details, viewer
from sidebar_app.model import MODE_FOCUS, Snapshot, ViewerContext, effective_viewer
from sidebar_app.names import (
    DisplayNameResolver,
    PersonalDetailsResolver,
    ResolutionError,
    collation_key,
    conversation_label,
)


class ModelTests(unittest.TestCase):
    def test_negative_unread_count_is_rejected(self):
        with self.assertRaises(ValueError):
            fake_conversation("x", ONE_TWO, unread_count=-1)

    def test_participants_deduplicated_in_order(self):
        conversation = fake_conversation("x", ["b", "a", "b"])
        self.assertEqual(conversation.participants, ("b", "a"))

    def test_unknown_display_mode_is_rejected(self):
        with self.assertRaises(ValueError):
            ViewerContext(viewer_id="me", display_mode="compact")

    def test_snapshot_rejects_duplicate_ids(self):
        with self.assertRaises(ValueError):
            Snapshot(conversations=(fake_conversation("1"), fake_conversation("1")), viewer=viewer())

    def test_effective_viewer_drops_unknown_active_id(self):
        conversations = [fake_conversation("1")]
        context = viewer(display_mode=MODE_FOCUS, active_conversation_id="2")
        normalized = effective_viewer(conversations, context)
        self.assertIsNone(normalized.active_conversation_id)
        self.assertEqual(normalized.display_mode, MODE_FOCUS)
        self.assertEqual(effective_viewer(conversations, viewer(active_conversation_id="1")).active_conversation_id, "1")


class NameTests(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = PersonalDetailsResolver(fake_personal_details())

    def test_group_uses_first_names_in_participant_order(self):
        self.assertEqual(self.resolver.resolve(FIVE_SIX), "Five, Six")
        self.assertEqual(self.resolver.resolve(tuple(reversed(FIVE_SIX))), "Six, Five")

    def test_single_participant_uses_display_name(self):
        self.assertEqual(self.resolver.resolve(["email1@test.com"]), "Email One")

    def test_falls_back_between_name_fields(self):
        resolver = PersonalDetailsResolver(
            {
                "a": {"firstName": "Ada"},
                "b": {"displayName": "Bob Builder", "firstName": " "},
            }
        )
        self.assertEqual(resolver.resolve(["a"]), "Ada")
        self.assertEqual(resolver.resolve(["a", "b"]), "Ada, Bob Builder")

    def test_missing_details_raise(self):
        with self.assertRaises(ResolutionError):
            self.resolver.resolve(["nobody@test.com"])
        with self.assertRaises(ResolutionError):
            self.resolver.resolve([])
        with self.assertRaises(ResolutionError):
            PersonalDetailsResolver({"a": {"login": "a"}}).resolve(["a"])

    def test_base_resolver_is_abstract(self):
        with self.assertRaises(NotImplementedError):
            DisplayNameResolver().resolve(["a"])

    def test_room_titles_win_over_participants(self):
        room = fake_conversation("r", ONE_TWO, title="Report")
        archived = fake_conversation("r", ONE_TWO, title="Report", is_archived=True)
        plain = fake_conversation("p", ONE_TWO)
        self.assertEqual(conversation_label(room, self.resolver), "Report")
        self.assertEqual(conversation_label(archived, self.resolver), "Report (archived)")
        self.assertEqual(conversation_label(plain, self.resolver), "One, Two")

    def test_collation_is_case_insensitive_first(self):
        labels = ["beta", "Alpha", "alpha", "Beta"]
        self.assertEqual(sorted(labels, key=collation_key), ["Alpha", "alpha", "Beta", "beta"])


if __name__ == "__main__":
    unittest.main()
