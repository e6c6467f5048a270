"""Unit tests for the collaboration hub (core/services/collaboration_service.py)."""

import random
from datetime import timedelta

import pytest

from notecollab.core.models.events import ClientEvent
from notecollab.core.services.collaboration_service import (
    CollaborationHub,
    ColorPicker,
    normalize_document_id,
)


def auth(hub, *ids):
    for cid in ids:
        hub.authenticate(cid, f"user-{cid}", f"Name {cid.upper()}")


def assert_invariants(hub):
    """At most one room per connection, every member exists, no empty rooms."""
    seen = {}
    for doc, members in hub.rooms.items():
        assert members, f"empty room {doc} left behind"
        for cid in members:
            assert cid in hub.connections
            assert hub.connections[cid].document_id == doc
            assert cid not in seen
            seen[cid] = doc
    for cid, conn in hub.connections.items():
        if conn.document_id is not None:
            assert seen.get(cid) == conn.document_id


class TestColorPicker:
    def test_round_robin_cycles_palette(self):
        picker = ColorPicker(["a", "b"], strategy="round_robin")
        assert [picker.next() for _ in range(5)] == ["a", "b", "a", "b", "a"]

    def test_random_picks_from_palette(self):
        picker = ColorPicker(["a", "b", "c"], rng=random.Random(7))
        assert {picker.next() for _ in range(50)} <= {"a", "b", "c"}

    def test_empty_palette_rejected(self):
        with pytest.raises(ValueError):
            ColorPicker([])

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError):
            ColorPicker(["a"], strategy="rainbow")


class TestNormalizeDocumentId:
    @pytest.mark.parametrize("value, expected", [
        ("doc1", "doc1"),
        ("  doc1 ", "doc1"),
        (42, "42"),
        ("", None),
        ("   ", None),
        (None, None),
        (True, None),
        ({"id": 1}, None),
    ])
    def test_values(self, value, expected):
        assert normalize_document_id(value) == expected


class TestConnectionLifecycle:
    def test_authenticate_assigns_palette_color(self, hub):
        assert hub.authenticate("a", "u1", "Ada") == "#111111"
        assert hub.authenticate("b", "u2", "Bob") == "#222222"
        conn = hub.get_connection("a")
        assert conn.user_id == "u1"
        assert conn.display_name == "Ada"
        assert conn.document_id is None

    def test_same_user_may_hold_several_connections(self, hub):
        hub.authenticate("a", "u1", "Ada")
        hub.authenticate("b", "u1", "Ada")
        assert hub.stats() == {"connections": 2, "rooms": 0, "users": 1}

    def test_reauthenticate_keeps_color(self, hub):
        color = hub.authenticate("a", "u1", "Ada")
        hub.join("a", "doc1")
        assert hub.authenticate("a", "u1", "Ada L.") == color
        conn = hub.get_connection("a")
        assert conn.display_name == "Ada L."
        assert conn.document_id == "doc1"

    def test_reauthenticate_in_room_announces_new_identity(self, hub, transport):
        hub.authenticate("a", "alice", "Alice")
        hub.authenticate("b", "bob", "Bob")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        transport.clear()

        hub.authenticate("a", "mallory", "Mallory")

        assert transport.sent == [
            ("b", "member.left", {"userId": "alice", "displayName": "Alice"}),
            ("b", "member.joined", {"userId": "mallory", "displayName": "Mallory", "color": "#111111"}),
        ]
        assert hub.roster("doc1", exclude="b") == [
            {"userId": "mallory", "displayName": "Mallory", "color": "#111111"}
        ]

        transport.clear()
        hub.disconnect("a")
        assert transport.events_for("b", "member.left") == [
            {"userId": "mallory", "displayName": "Mallory"}
        ]
        assert_invariants(hub)

    def test_reauthenticate_same_identity_is_silent(self, hub, transport):
        hub.authenticate("a", "alice", "Alice")
        hub.authenticate("b", "bob", "Bob")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        transport.clear()

        hub.authenticate("a", "alice", "Alice")
        assert transport.sent == []

    def test_reauthenticate_outside_room_notifies_nobody(self, hub, transport):
        auth(hub, "a", "b")
        hub.join("b", "doc1")
        transport.clear()

        hub.authenticate("a", "someone-else", "Else")
        assert transport.sent == []

    def test_color_stable_across_room_switches(self, hub, transport):
        auth(hub, "a", "b")
        color = hub.get_connection("a").color
        hub.join("b", "doc2")
        hub.join("a", "doc1")
        hub.join("a", "doc2")
        assert hub.get_connection("a").color == color
        assert transport.events_for("b", "member.joined")[0]["color"] == color

    def test_touch_activity(self, hub, clock):
        auth(hub, "a")
        clock.advance(30)
        assert hub.touch_activity("a") is True
        assert hub.get_connection("a").last_activity == clock.now
        assert hub.touch_activity("ghost") is False

    def test_get_connection_returns_copy(self, hub):
        auth(hub, "a")
        hub.get_connection("a").document_id = "tampered"
        assert hub.get_connection("a").document_id is None

    def test_disconnect_notifies_room_once(self, hub, transport):
        auth(hub, "a", "b")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        transport.clear()

        assert hub.disconnect("a") is True
        assert hub.disconnect("a") is False

        assert transport.events_for("b", "member.left") == [
            {"userId": "user-a", "displayName": "Name A"}
        ]
        assert transport.names_for("a") == []
        assert "a" not in hub.connections
        assert hub.rooms == {"doc1": {"b"}}
        assert_invariants(hub)

    def test_disconnect_unknown_is_noop(self, hub, transport):
        assert hub.disconnect("nobody") is False
        assert transport.sent == []

    def test_disconnect_last_member_drops_room(self, hub):
        auth(hub, "a")
        hub.join("a", "doc1")
        hub.disconnect("a")
        assert hub.rooms == {}


class TestIdleSweep:
    def test_sweep_evicts_idle_and_notifies(self, hub, transport, clock):
        auth(hub, "a", "b")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        transport.clear()

        clock.advance(100)
        hub.touch_activity("b")
        clock.advance(250)

        assert hub.sweep_idle(300) == ["a"]
        assert transport.events_for("b", "member.left") == [
            {"userId": "user-a", "displayName": "Name A"}
        ]
        assert transport.closed == ["a"]
        assert "a" not in hub.connections
        assert "b" in hub.connections
        assert_invariants(hub)

    def test_sweep_keeps_active_connections(self, hub, transport, clock):
        auth(hub, "a")
        clock.advance(299)
        assert hub.sweep_idle(300) == []
        assert transport.closed == []

    def test_sweep_accepts_timedelta(self, hub, clock):
        auth(hub, "a")
        clock.advance(61)
        assert hub.sweep_idle(timedelta(minutes=1)) == ["a"]

    def test_sweep_does_not_notify_other_evicted_members(self, hub, transport, clock):
        auth(hub, "a", "b", "c")
        for cid in ("a", "b", "c"):
            hub.join(cid, "doc1")
        transport.clear()
        clock.advance(500)
        hub.touch_activity("c")

        assert sorted(hub.sweep_idle(300)) == ["a", "b"]
        assert transport.names_for("a") == []
        assert transport.names_for("b") == []
        assert len(transport.events_for("c", "member.left")) == 2
        assert hub.rooms == {"doc1": {"c"}}

    def test_sweep_survives_transport_close_failure(self, hub, transport, clock):
        def broken_close(cid):
            raise RuntimeError("socket already gone")

        transport.close = broken_close
        auth(hub, "a", "b")
        clock.advance(1000)
        assert sorted(hub.sweep_idle(10)) == ["a", "b"]
        assert hub.connections == {}


class TestRoomMembership:
    def test_join_snapshot_lists_existing_members_only(self, hub, transport):
        auth(hub, "a", "b", "c")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        transport.clear()

        hub.join("c", "doc1")

        snapshot = transport.events_for("c", "room.snapshot")
        assert snapshot == [{
            "documentId": "doc1",
            "members": [
                {"userId": "user-a", "displayName": "Name A", "color": "#111111"},
                {"userId": "user-b", "displayName": "Name B", "color": "#222222"},
            ],
        }]
        joined = {"userId": "user-c", "displayName": "Name C", "color": "#333333"}
        assert transport.events_for("a", "member.joined") == [joined]
        assert transport.events_for("b", "member.joined") == [joined]
        assert transport.events_for("c", "member.joined") == []

    def test_join_empty_room_creates_it(self, hub, transport):
        auth(hub, "a")
        assert hub.join("a", "new-doc") is True
        assert hub.rooms == {"new-doc": {"a"}}
        assert transport.events_for("a", "room.snapshot") == [{"documentId": "new-doc", "members": []}]

    def test_join_requires_authentication(self, hub, transport):
        assert hub.join("ghost", "doc1") is False
        assert hub.rooms == {}
        assert transport.sent == []

    def test_switching_rooms_leaves_previous(self, hub, transport):
        auth(hub, "a", "b", "c")
        hub.join("b", "doc1")
        hub.join("c", "doc2")
        hub.join("a", "doc1")
        transport.clear()

        hub.join("a", "doc2")

        assert transport.events_for("b", "member.left") == [
            {"userId": "user-a", "displayName": "Name A"}
        ]
        assert transport.events_for("c", "member.joined") == [
            {"userId": "user-a", "displayName": "Name A", "color": "#111111"}
        ]
        assert hub.rooms == {"doc1": {"b"}, "doc2": {"c", "a"}}
        assert hub.get_connection("a").document_id == "doc2"
        assert_invariants(hub)

    def test_rejoining_same_room_only_resends_snapshot(self, hub, transport):
        auth(hub, "a", "b")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        transport.clear()

        hub.join("b", "doc1")

        assert transport.names_for("a") == []
        assert transport.names_for("b") == ["room.snapshot"]
        assert hub.rooms == {"doc1": {"a", "b"}}

    def test_leave_notifies_remaining_members_once(self, hub, transport):
        auth(hub, "a", "b", "c")
        for cid in ("a", "b", "c"):
            hub.join(cid, "doc1")
        transport.clear()

        assert hub.leave("a", "doc1") is True

        left = {"userId": "user-a", "displayName": "Name A"}
        assert transport.events_for("b") == [left]
        assert transport.events_for("c") == [left]
        assert transport.events_for("a") == []
        assert hub.get_connection("a").document_id is None
        assert_invariants(hub)

    def test_leave_last_member_removes_room(self, hub, transport):
        auth(hub, "a")
        hub.join("a", "doc1")
        transport.clear()
        hub.leave("a", "doc1")
        assert hub.rooms == {}
        assert transport.sent == []

    def test_leave_other_room_is_noop(self, hub, transport):
        auth(hub, "a", "b")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        transport.clear()

        assert hub.leave("a", "doc2") is False
        assert hub.leave("ghost", "doc1") is False
        assert transport.sent == []
        assert hub.get_connection("a").document_id == "doc1"

    def test_roster(self, hub):
        auth(hub, "a", "b")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        assert [m["userId"] for m in hub.roster("doc1")] == ["user-a", "user-b"]
        assert [m["userId"] for m in hub.roster("doc1", exclude="a")] == ["user-b"]
        assert hub.roster("missing") == []


class TestRelay:
    @pytest.fixture
    def room(self, hub, transport):
        auth(hub, "a", "b", "c")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        hub.join("c", "other")
        transport.clear()
        return hub

    def test_cursor_move_scenario(self, room, transport):
        delivered = room.relay("a", "cursor.move", {"documentId": "doc1", "position": 42})

        assert delivered == 1
        assert transport.events_for("b", "cursor.move") == [{
            "documentId": "doc1",
            "position": 42,
            "userId": "user-a",
            "displayName": "Name A",
            "color": "#111111",
        }]
        assert transport.events_for("a") == []
        assert transport.events_for("c") == []

    def test_identity_cannot_be_spoofed(self, room, transport):
        room.relay("a", ClientEvent.SELECTION_SET, {
            "documentId": "doc1",
            "start": 1,
            "end": 5,
            "userId": "user-b",
            "displayName": "Name B",
            "color": "#222222",
        })
        event = transport.events_for("b", "selection.set")[0]
        assert event["userId"] == "user-a"
        assert event["displayName"] == "Name A"
        assert event["color"] == "#111111"
        assert (event["start"], event["end"]) == (1, 5)

    def test_content_delta_and_typing_carry_no_color(self, room, transport):
        room.relay("a", "content.delta", {"documentId": "doc1", "payload": {"ops": [1]}})
        room.relay("a", "typing", {"documentId": "doc1", "isTyping": True})

        delta, typing = transport.events_for("b")
        assert delta == {
            "documentId": "doc1",
            "payload": {"ops": [1]},
            "userId": "user-a",
            "displayName": "Name A",
        }
        assert typing == {
            "documentId": "doc1",
            "isTyping": True,
            "userId": "user-a",
            "displayName": "Name A",
        }

    def test_client_color_is_stripped_from_uncolored_events(self, room, transport):
        room.relay("a", "typing", {"documentId": "doc1", "isTyping": False, "color": "red"})
        room.relay("a", "content.delta", {"documentId": "doc1", "payload": {}, "color": "#222222"})

        typing, delta = transport.events_for("b")
        assert "color" not in typing
        assert "color" not in delta
        assert typing["isTyping"] is False

    def test_relay_without_document_id_uses_current_room(self, room, transport):
        assert room.relay("a", "typing", {"isTyping": True}) == 1
        assert transport.events_for("b")[0]["isTyping"] is True

    def test_relay_for_foreign_room_dropped(self, room, transport):
        assert room.relay("a", "cursor.move", {"documentId": "other", "position": 1}) == 0
        assert transport.sent == []

    def test_relay_outside_room_dropped(self, room, transport):
        room.leave("a", "doc1")
        transport.clear()
        assert room.relay("a", "content.delta", {"documentId": "doc1", "payload": "x"}) == 0
        assert transport.sent == []

    def test_relay_from_unknown_connection_dropped(self, room, transport):
        assert room.relay("ghost", "cursor.move", {"position": 1}) == 0
        assert transport.sent == []

    def test_relay_ignores_non_relayed_kinds_and_bad_payloads(self, room, transport):
        assert room.relay("a", "room.join", {"documentId": "doc1"}) == 0
        assert room.relay("a", "nonsense", {}) == 0
        assert room.relay("a", "cursor.move", ["not", "a", "dict"]) == 0
        assert transport.sent == []

    def test_relay_does_not_mutate_client_payload(self, room):
        payload = {"documentId": "doc1", "position": 3, "userId": "forged"}
        room.relay("a", "cursor.move", payload)
        assert payload == {"documentId": "doc1", "position": 3, "userId": "forged"}

    def test_failed_recipient_does_not_abort_fanout(self, hub, transport):
        auth(hub, "a", "b", "c")
        for cid in ("a", "b", "c"):
            hub.join(cid, "doc1")
        transport.clear()
        transport.failing.add("b")

        assert hub.relay("a", "cursor.move", {"position": 9}) == 2
        assert len(transport.events_for("c", "cursor.move")) == 1

    def test_relay_touches_activity(self, room, clock):
        clock.advance(120)
        room.relay("a", "typing", {"isTyping": True})
        assert room.get_connection("a").last_activity == clock.now


class TestServerPushes:
    def test_broadcast_to_room_reaches_everyone(self, hub, transport):
        auth(hub, "a", "b", "c")
        hub.join("a", "doc1")
        hub.join("b", "doc1")
        transport.clear()

        assert hub.broadcast_to_room("doc1", "note.saved", {"version": 3}) == 2
        assert transport.events_for("a") == [{"version": 3}]
        assert transport.events_for("b") == [{"version": 3}]
        assert transport.events_for("c") == []
        assert hub.broadcast_to_room("missing", "note.saved", {}) == 0

    def test_send_to_user_reaches_all_their_connections(self, hub, transport):
        hub.authenticate("a", "u1", "Ada")
        hub.authenticate("b", "u1", "Ada")
        hub.authenticate("c", "u2", "Bob")
        transport.clear()

        assert hub.send_to_user("u1", "share.received", {"noteId": "n1"}) == 2
        assert transport.names_for("a") == ["share.received"]
        assert transport.names_for("b") == ["share.received"]
        assert transport.names_for("c") == []

    def test_stats(self, hub):
        assert hub.stats() == {"connections": 0, "rooms": 0, "users": 0}
        hub.authenticate("a", "u1", "Ada")
        hub.authenticate("b", "u2", "Bob")
        hub.join("a", "doc1")
        assert hub.stats() == {"connections": 2, "rooms": 1, "users": 2}


def test_hub_uses_configured_palette(transport, monkeypatch):
    from notecollab.core.services import collaboration_service

    class DummySettings:
        collab_presence_colors = ["#ABCDEF"]
        collab_color_strategy = "round_robin"

    monkeypatch.setattr(collaboration_service, "get_settings", lambda: DummySettings())
    hub = CollaborationHub(transport)
    assert hub.authenticate("a", "u1", "Ada") == "#ABCDEF"
