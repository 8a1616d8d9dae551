"""Tests for past, now and future events."""

import asyncio
from datetime import UTC, datetime

import pytest
from fakes import users_of

from aura.core.modules.event.models import EventKind, FutureEventData, NowEvent, NowEventData, PastEventData
from aura.core.modules.location.models import LocationRef
from aura.errors import AccessDeniedError, FanoutIncompleteError, NotFoundError, PreconditionFailedError, ValidationError

KLCC = LocationRef(id="LOC253000000001", name="KLCC Park", address="Kuala Lumpur", lat=3.15, lng=101.71)
START = datetime(2025, 3, 14, 18, 0, tzinfo=UTC)
END = datetime(2025, 3, 14, 21, 0, tzinfo=UTC)


def now_event_data(max_participants: int = 3, **overrides) -> NowEventData:
    fields = {
        "title": "Night run",
        "event_type": "sport",
        "desc": "5k around the park",
        "location": KLCC,
        "start_date": START,
        "end_date": END,
        "event_status": "open",
        "max_participants": max_participants,
    } | overrides
    return NowEventData(**fields)


def event_entry(core, user_id, event_id):
    return users_of(core).get(user_id)["events"].get(event_id)


class TestPastEvent:
    def test_owner_is_only_participant(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            data = PastEventData(
                title="Picnic", event_type="social", desc="", location=KLCC, start_date=START, end_date=END
            )
            return alice, await core.services.event.create_past_event(alice.id, data)

        alice, event = asyncio.run(scenario())
        assert event.id.startswith("PE")
        assert event.kind == EventKind.PAST
        assert event.participant_ids == [alice.id]

    def test_end_before_start_rejected(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            data = PastEventData(
                title="Picnic", event_type="social", desc="", location=KLCC, start_date=END, end_date=START
            )
            await core.services.event.create_past_event(alice.id, data)

        with pytest.raises(ValidationError, match="End date"):
            asyncio.run(scenario())


class TestNowEvent:
    def test_participants_get_entries(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [bob.id])
            return alice, bob, event

        alice, bob, event = asyncio.run(scenario())
        assert event.id.startswith("NE")
        assert event.participant_ids == [alice.id, bob.id]
        for user_id in (alice.id, bob.id):
            entry = event_entry(core, user_id, event.id)
            assert entry["participant_ids"] == [alice.id, bob.id]
            assert entry["title"] == "Night run"

    def test_too_many_participants_at_creation(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            await core.services.event.create_now_event(alice.id, now_event_data(max_participants=1), [bob.id])

        with pytest.raises(ValidationError, match="Too many participants"):
            asyncio.run(scenario())

    def test_join_and_leave(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [])
            joined = await core.services.event.join_event(bob.id, event.id)
            after_join = dict(event_entry(core, alice.id, event.id))
            left = await core.services.event.leave_event(bob.id, event.id)
            return alice, bob, joined, after_join, left

        alice, bob, joined, after_join, left = asyncio.run(scenario())
        assert joined.participant_ids == [alice.id, bob.id]
        assert [participant.name for participant in joined.participants] == ["Alice", "Bob"]
        assert after_join["participant_ids"] == [alice.id, bob.id]
        assert left.participant_ids == [alice.id]
        assert [participant.id for participant in left.participants] == [alice.id]
        assert event_entry(core, alice.id, left.id)["participant_ids"] == [alice.id]
        assert event_entry(core, bob.id, left.id) is None

    def test_join_twice_rejected(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [bob.id])
            await core.services.event.join_event(bob.id, event.id)

        with pytest.raises(PreconditionFailedError, match="already joined"):
            asyncio.run(scenario())

    def test_full_event_rejected(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            carol = await make_user(core, "Carol")
            event = await core.services.event.create_now_event(alice.id, now_event_data(max_participants=2), [bob.id])
            await core.services.event.join_event(carol.id, event.id)

        with pytest.raises(PreconditionFailedError, match="Event is full"):
            asyncio.run(scenario())

    def test_concurrent_joins_respect_capacity(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            others = [await make_user(core, name) for name in ("Bob", "Carol", "Dan")]
            event = await core.services.event.create_now_event(alice.id, now_event_data(max_participants=2), [])
            results = await asyncio.gather(
                *(core.services.event.join_event(user.id, event.id) for user in others), return_exceptions=True
            )
            return event, results

        event, results = asyncio.run(scenario())
        assert sum(isinstance(result, NowEvent) for result in results) == 1
        assert all(isinstance(result, (NowEvent, PreconditionFailedError)) for result in results)
        stored = asyncio.run(core.services.event.get_now_event(event.id))
        assert len(stored.participant_ids) == 2

    def test_join_rechecks_capacity_lowered_meanwhile(self, core, make_user, monkeypatch):
        now_events = core.database.get_collection("nowEvents")
        original = now_events.find_one_and_update

        async def lower_cap_before_push(query, update, **kwargs):
            if "$push" in update:
                now_events.get(query["_id"])["max_participants"] = 2
            return await original(query, update, **kwargs)

        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            carol = await make_user(core, "Carol")
            event = await core.services.event.create_now_event(alice.id, now_event_data(max_participants=3), [bob.id])
            monkeypatch.setattr(now_events, "find_one_and_update", lower_cap_before_push)
            await core.services.event.join_event(carol.id, event.id)

        with pytest.raises(PreconditionFailedError, match="Event is full"):
            asyncio.run(scenario())
        assert len(now_events.documents[0]["participant_ids"]) == 2

    def test_update_rechecks_capacity_against_join_meanwhile(self, core, make_user, monkeypatch):
        now_events = core.database.get_collection("nowEvents")
        original = now_events.find_one_and_update

        async def join_before_update(query, update, **kwargs):
            if "$set" in update and "max_participants" in update["$set"]:
                now_events.get(query["_id"])["participant_ids"].append("US000000099")
            return await original(query, update, **kwargs)

        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            event = await core.services.event.create_now_event(alice.id, now_event_data(max_participants=3), [bob.id])
            monkeypatch.setattr(now_events, "find_one_and_update", join_before_update)
            await core.services.event.update_event(EventKind.NOW, alice.id, event.id, now_event_data(max_participants=2))

        with pytest.raises(ValidationError, match="already has 3 participants"):
            asyncio.run(scenario())
        assert now_events.documents[0]["max_participants"] == 3

    def test_owner_cannot_leave(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [])
            await core.services.event.leave_event(alice.id, event.id)

        with pytest.raises(PreconditionFailedError, match="owner cannot leave"):
            asyncio.run(scenario())

    def test_update_reprojects_title(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [bob.id])
            updated = await core.services.event.update_event(
                EventKind.NOW, alice.id, event.id, now_event_data(title="Morning run")
            )
            return bob, updated

        bob, updated = asyncio.run(scenario())
        assert updated.title == "Morning run"
        assert updated.version == 2
        assert event_entry(core, bob.id, updated.id)["title"] == "Morning run"

    def test_update_by_non_owner_denied(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [bob.id])
            await core.services.event.update_event(EventKind.NOW, bob.id, event.id, now_event_data())

        with pytest.raises(AccessDeniedError, match="not the owner of this event"):
            asyncio.run(scenario())

    def test_update_with_wrong_kind_of_data(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [])
            data = PastEventData(title="x", event_type="x", desc="", location=KLCC, start_date=START, end_date=END)
            await core.services.event.update_event(EventKind.NOW, alice.id, event.id, data)

        with pytest.raises(ValidationError, match="Invalid data"):
            asyncio.run(scenario())

    def test_delete_retracts_entries(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [bob.id])
            await core.services.event.delete_event(EventKind.NOW, alice.id, event.id)
            return alice, bob, event

        alice, bob, event = asyncio.run(scenario())
        assert event_entry(core, alice.id, event.id) is None
        assert event_entry(core, bob.id, event.id) is None
        with pytest.raises(NotFoundError):
            asyncio.run(core.services.event.get_event(EventKind.NOW, event.id))

    def test_interrupted_delete_keeps_event_until_repeated(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            event = await core.services.event.create_now_event(alice.id, now_event_data(), [bob.id])

            users_of(core).fail_writes_for.add(bob.id)
            with pytest.raises(FanoutIncompleteError) as exc_info:
                await core.services.event.delete_event(EventKind.NOW, alice.id, event.id)
            still_there = await core.services.event.get_now_event(event.id)

            users_of(core).fail_writes_for.clear()
            await core.services.event.delete_event(EventKind.NOW, alice.id, event.id)
            return bob, event, exc_info.value, still_there

        bob, event, error, still_there = asyncio.run(scenario())
        assert error.failed == [bob.id]
        assert still_there.id == event.id
        assert event_entry(core, bob.id, event.id) is None
        with pytest.raises(NotFoundError):
            asyncio.run(core.services.event.get_event(EventKind.NOW, event.id))


class TestListEvents:
    def test_filter_by_owner_and_paginate(self, core, make_user):
        async def scenario():
            alice = await make_user(core, "Alice")
            bob = await make_user(core, "Bob")
            data = FutureEventData(title="Cafe", event_type="food", desc="", location=KLCC)
            for owner in (alice, alice, bob):
                await core.services.event.create_future_event(owner.id, data)
            by_alice = await core.services.event.list_events(EventKind.FUTURE, alice.id)
            first_page = await core.services.event.list_events(EventKind.FUTURE, limit=2)
            return by_alice, first_page

        by_alice, first_page = asyncio.run(scenario())
        assert by_alice.total == 2
        assert first_page.total == 3
        assert len(first_page.items) == 2
        assert all(event.kind == EventKind.FUTURE for event in first_page.items)
