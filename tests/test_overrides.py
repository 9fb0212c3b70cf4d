from __future__ import annotations

from schedule_sync.services import SIGN_IN_MESSAGE, OverrideService, SyncApplyService

from .conftest import MONDAY, USER


def stored(db, settings):
    return {
        row["event_date_id"]: row["availability"]
        for row in db.rows(settings.storage.overrides_table)
        if row["user_id"] == USER and row["event_id"] == "ev-1"
    }


def test_save_records_selected_answer(context, db, settings):
    result = OverrideService(context).save(USER, "ev-1", ["d1", "d2"], selected_date_ids=["d2"])

    assert result.success
    assert stored(db, settings) == {"d1": False, "d2": True}
    assert all(row["reason"] == "conflict_override" for row in db.rows(settings.storage.overrides_table))


def test_save_replaces_previous_set(context, db, seed, settings):
    seed.override(USER, "ev-1", "d1")
    seed.override(USER, "ev-2", "x1")

    OverrideService(context).save(USER, "ev-1", ["d2"], selected_date_ids=[])

    assert stored(db, settings) == {"d2": False}
    assert [row["event_date_id"] for row in db.rows(settings.storage.overrides_table) if row["event_id"] == "ev-2"] == [
        "x1"
    ]


def test_empty_set_clears_event_overrides(context, db, seed, settings):
    seed.override(USER, "ev-1", "d1")
    seed.override(USER, "ev-1", "d2")

    result = OverrideService(context).save(USER, "ev-1", [])

    assert result.success
    assert stored(db, settings) == {}


def test_missing_selection_falls_back_to_stored_answers(context, db, seed, settings):
    seed.link(USER, "ev-1", "p1")
    seed.answer("p1", "ev-1", "d1", True)
    seed.answer("p1", "ev-1", "d2", False)

    OverrideService(context).save(USER, "ev-1", ["d1", "d2"])

    assert stored(db, settings) == {"d1": True, "d2": False}


def test_saved_override_shields_date_from_apply(context, db, seed, settings):
    seed.event("ev-1", "Alpha", [("d1", f"{MONDAY}T10:00", f"{MONDAY}T11:00")])
    seed.link(USER, "ev-1", "p1")
    seed.answer("p1", "ev-1", "d1", True)
    seed.block(USER, f"{MONDAY}T10:00", f"{MONDAY}T11:00", False)

    OverrideService(context).save(USER, "ev-1", ["d1"], selected_date_ids=["d1"])
    result = SyncApplyService(context).apply(USER, "ev-1")

    assert result.updated_count == 0
    [answer] = db.rows(settings.storage.answers_table)
    assert answer["availability"] is True


def test_write_failure_is_reported(context, db, settings):
    db.fail(settings.storage.overrides_table, "upsert")

    result = OverrideService(context).save(USER, "ev-1", ["d1"], selected_date_ids=[])

    assert not result.success
    assert result.message


def test_save_requires_user(context, db):
    result = OverrideService(context).save(None, "ev-1", ["d1"])

    assert result.to_dict() == {"success": False, "message": SIGN_IN_MESSAGE}
    assert db.calls == []


def test_saving_again_updates_existing_rows(context, db, settings):
    service = OverrideService(context)
    service.save(USER, "ev-1", ["d1"], selected_date_ids=[])
    service.save(USER, "ev-1", ["d1", "d2"], selected_date_ids=["d1"])

    assert stored(db, settings) == {"d1": True, "d2": False}
    assert len(db.rows(settings.storage.overrides_table)) == 2
