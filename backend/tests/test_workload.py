from classgrid.schemas.timetable import RosterEntry
from classgrid.services.grid_store import GridStore
from classgrid.services.period_calendar import SlotKey
from classgrid.services.workload import compute_load, grid_summary, store_load


def test_empty_grid_has_no_load(calendar):
    assert compute_load({}, {}, calendar) == []


def test_single_assigned_slot_counts_once(calendar):
    store = GridStore(calendar, [RosterEntry(name="Mrs. A", subjects=["Mathematics"])])
    store.assign(SlotKey("Monday", "Period 1"), "Mathematics")

    load = store_load(store)

    assert [(item.teacher_name, item.total_periods) for item in load] == [("Mrs. A", 1)]
    assert load[0].overloaded is False


def test_load_follows_first_appearance_in_calendar_order(calendar, roster):
    store = GridStore(calendar, roster)
    store.assign(SlotKey("Tuesday", "Period 1"), "English")
    store.assign(SlotKey("Wednesday", "Period 4"), "English")
    store.assign(SlotKey("Monday", "Period 8"), "Mathematics")
    store.assign(SlotKey("Friday", "Period 2"), "Art")

    load = store_load(store)

    assert [(item.teacher_name, item.total_periods) for item in load] == [("Mrs. A", 1), ("Mr. B", 2)]


def test_overrides_are_counted_under_the_override_name(calendar, roster):
    store = GridStore(calendar, roster)
    store.assign(SlotKey("Monday", "Period 1"), "Mathematics")
    store.assign(SlotKey("Monday", "Period 2"), "Mathematics")
    store.override_teacher(SlotKey("Monday", "Period 2"), "Dr. C")

    totals = {item.teacher_name: item.total_periods for item in store_load(store)}

    assert totals == {"Mrs. A": 1, "Dr. C": 1}


def test_teacher_above_weekly_limit_is_flagged(calendar, roster):
    store = GridStore(calendar, roster)
    for period in ("Period 1", "Period 2", "Period 3"):
        store.assign(SlotKey("Monday", period), "Mathematics")
    store.assign(SlotKey("Monday", "Period 4"), "English")

    load = {item.teacher_name: item for item in store_load(store, weekly_limit=2)}

    assert load["Mrs. A"].total_periods == 3
    assert load["Mrs. A"].overloaded is True
    assert load["Mr. B"].overloaded is False


def test_grid_summary_reports_completeness(calendar, roster):
    store = GridStore(calendar, roster)
    summary = grid_summary(store, weekly_limit=20)
    assert summary.filled_slots == 0
    assert summary.assignable_slots == 40
    assert summary.is_complete is False

    for slot in calendar.slots():
        store.assign(slot, "Mathematics")
    summary = grid_summary(store, weekly_limit=20)

    assert summary.filled_slots == 40
    assert summary.is_complete is True
    assert summary.teacher_load[0].teacher_name == "Mrs. A"
    assert summary.teacher_load[0].total_periods == 40
    assert summary.teacher_load[0].overloaded is True
