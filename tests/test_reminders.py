from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from whatsapp_agent.errors import InvalidSchedule
from whatsapp_agent.reminders import ReminderStore, resolve_due_at
from whatsapp_agent.storage.memory import InMemoryStorage

NOW = datetime(2025, 3, 3, 12, 0, tzinfo=timezone.utc)


def _store(now: datetime = NOW) -> ReminderStore:
    return ReminderStore(InMemoryStorage(), clock=lambda: now)


@pytest.mark.parametrize(
    "offsets, expected",
    [
        ({"delay_minutes": 30}, timedelta(minutes=30)),
        ({"delay_hours": 2}, timedelta(hours=2)),
        ({"delay_days": 1}, timedelta(days=1)),
        ({"delay_hours": 2, "delay_days": 1}, timedelta(hours=26)),
        ({"delay_minutes": 15, "delay_hours": 1, "delay_days": 3}, timedelta(days=3, hours=1, minutes=15)),
        ({"delay_minutes": 1.5}, timedelta(seconds=90)),
    ],
)
def test_offsets_add_up_from_creation_time(offsets, expected):
    item = _store().create("ping", **offsets)

    assert item.due_at == NOW + expected
    assert item.created_at == NOW
    assert item.delivered is False


def test_create_without_timing_fails():
    with pytest.raises(InvalidSchedule):
        _store().create("ping")


def test_zero_and_negative_offsets_do_not_count():
    with pytest.raises(InvalidSchedule):
        _store().create("ping", delay_minutes=0, delay_hours=-1)


def test_unparseable_specific_time_fails():
    with pytest.raises(InvalidSchedule):
        _store().create("ping", specific_time="next tuesday-ish")


def test_specific_time_wins_over_offsets():
    item = _store().create("ping", specific_time="2025-03-10T09:30:00+00:00", delay_hours=2)

    assert item.due_at == datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc)


def test_naive_specific_time_uses_default_zone():
    zone = ZoneInfo("America/New_York")
    due = resolve_due_at(NOW, specific_time="2025-03-10T09:30:00", default_tz=zone)

    assert due == datetime(2025, 3, 10, 9, 30, tzinfo=zone)


def test_ids_are_unique_within_the_same_millisecond():
    store = _store()

    ids = {store.create(f"r{i}", delay_minutes=5).id for i in range(200)}

    assert len(ids) == 200
    assert all(item_id.startswith("rem_") for item_id in ids)


def test_due_items_skips_future_and_delivered():
    store = _store()
    soon = store.create("soon", delay_minutes=5)
    later = store.create("later", delay_hours=3)
    done = store.create("done", delay_minutes=1)
    store.mark_delivered(done.id)

    due = store.due_items(NOW + timedelta(minutes=5))

    assert [item.id for item in due] == [soon.id]
    assert later.id not in {item.id for item in due}


def test_due_items_includes_exact_due_time():
    store = _store()
    item = store.create("edge", delay_hours=1)

    assert store.due_items(NOW + timedelta(hours=1)) == [store.get(item.id)]
    assert store.due_items(NOW + timedelta(minutes=59)) == []


def test_mark_delivered_is_idempotent():
    store = _store()
    item = store.create("once", delay_minutes=1)

    store.mark_delivered(item.id)
    first = store.get(item.id)
    store.mark_delivered(item.id)

    assert store.get(item.id) == first
    assert first.delivered is True
    assert first.due_at == item.due_at


def test_mark_delivered_unknown_id_is_a_noop():
    store = _store()
    store.mark_delivered("rem_does_not_exist")

    assert store.due_items(NOW + timedelta(days=365)) == []


def test_snapshots_are_not_affected_by_later_updates():
    store = _store()
    item = store.create("snap", delay_minutes=1)

    store.mark_delivered(item.id)

    assert item.delivered is False
