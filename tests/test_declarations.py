from __future__ import annotations

from datetime import datetime

import pytest

from schedule_sync.domain import EventDate
from schedule_sync.services import SIGN_IN_MESSAGE, DeclarationService, ServiceContext
from schedule_sync.data import DataSourceError, SupabaseGateway

from .conftest import OTHER_USER, USER, make_settings, stamp


def test_manual_template_is_stored(context, db, settings):
    service = DeclarationService(context)
    result = service.upsert_manual_template(USER, weekday=1, start_time="09:00", end_time="18:00", availability=True)

    assert result.success
    [stored] = db.rows(settings.storage.templates_table)
    assert stored["weekday"] == 1
    assert (stored["start_time"], stored["end_time"]) == ("09:00", "18:00")
    assert stored["source"] == "manual"
    assert stored["sample_count"] == 1


def test_manual_template_upserts_same_range(context, db, settings):
    service = DeclarationService(context)
    service.upsert_manual_template(USER, weekday=1, start_time="09:00", end_time="18:00", availability=True)
    service.upsert_manual_template(USER, weekday=1, start_time="09:00", end_time="18:00", availability=False)

    [stored] = db.rows(settings.storage.templates_table)
    assert stored["availability"] is False


def test_template_with_inverted_range_is_rejected(context, db, settings):
    result = DeclarationService(context).upsert_manual_template(
        USER, weekday=1, start_time="18:00", end_time="09:00", availability=True
    )

    assert not result.success
    assert result.message
    assert db.rows(settings.storage.templates_table) == []


def test_template_midnight_end_becomes_end_of_day(context, db, settings):
    DeclarationService(context).upsert_manual_template(
        USER, weekday=5, start_time="22:00", end_time="00:00", availability=False
    )

    [stored] = db.rows(settings.storage.templates_table)
    assert stored["end_time"] == "24:00"


def test_template_requires_user(context, db, settings):
    result = DeclarationService(context).upsert_manual_template(
        None, weekday=1, start_time="09:00", end_time="10:00", availability=True
    )

    assert result.to_dict() == {"success": False, "message": SIGN_IN_MESSAGE}
    assert db.calls == []


def test_list_templates_groups_by_source(context, seed):
    seed.template(USER, 1, "09:00", "18:00", True)
    seed.template(USER, 2, "09:00", "12:00", False, source="learned", sample_count=4)
    seed.template(OTHER_USER, 3, "09:00", "12:00", False)

    groups = DeclarationService(context).list_templates(USER)

    assert [item.weekday for item in groups["manual"]] == [1]
    assert [item.sample_count for item in groups["learned"]] == [4]
    assert groups["learned"][0].is_read_only


def test_remove_template_of_other_user_is_silent_noop(context, db, seed, settings):
    seed.template(OTHER_USER, 1, "09:00", "18:00", True)
    template_id = db.rows(settings.storage.templates_table)[0]["id"]

    result = DeclarationService(context).remove_template(USER, template_id)

    assert result.success
    assert len(db.rows(settings.storage.templates_table)) == 1


def test_save_weekly_templates_compacts_and_cleans_up(context, db, seed, settings):
    seed.template(USER, 1, "09:00", "18:00", True)

    result = DeclarationService(context).save_weekly_templates(
        USER, [{"weekday": 1, "start_time": "12:00", "end_time": "13:00", "availability": False}]
    )

    assert result.success
    assert result.updated_count == 3
    stored = sorted(
        (row["start_time"], row["end_time"], row["availability"]) for row in db.rows(settings.storage.templates_table)
    )
    assert stored == [("09:00", "12:00", True), ("12:00", "13:00", False), ("13:00", "18:00", True)]


def test_save_weekly_templates_rejects_only_invalid_rows(context, db, settings):
    result = DeclarationService(context).save_weekly_templates(
        USER, [{"weekday": 9, "start_time": "12:00", "end_time": "13:00", "availability": False}]
    )

    assert not result.success
    assert result.updated_count == 0
    assert db.rows(settings.storage.templates_table) == []


def test_save_weekly_templates_reports_cleanup_failure_as_warning(context, db, seed, settings):
    seed.template(USER, 1, "09:00", "10:00", True)
    db.fail(settings.storage.templates_table, "delete")

    result = DeclarationService(context).save_weekly_templates(
        USER, [{"weekday": 1, "start_time": "10:00", "end_time": "11:00", "availability": True}]
    )

    assert result.success
    assert result.message
    assert result.updated_count == 1


def test_midnight_block_is_saved_once(context, db, settings):
    service = DeclarationService(context)
    for _ in range(2):
        result = service.upsert_block(
            USER, start_time="2026-10-19T23:00", end_time="2026-10-19T00:00", availability=False
        )
        assert result.success

    [stored] = db.rows(settings.storage.blocks_table)
    assert stored["start_time"] == stamp("2026-10-19T23:00")
    assert stored["end_time"] == stamp("2026-10-20T00:00")


def test_inverted_block_is_rejected_every_time(context, db, settings):
    service = DeclarationService(context)
    for _ in range(2):
        result = service.upsert_block(
            USER, start_time="2026-10-19T23:00", end_time="2026-10-19T22:00", availability=False
        )
        assert not result.success
    assert db.rows(settings.storage.blocks_table) == []


def test_block_is_split_into_hour_slots(context, db, settings):
    DeclarationService(context).upsert_block(
        USER, start_time="2026-10-19T09:00", end_time="2026-10-19T11:30", availability=True
    )

    stored = sorted((row["start_time"], row["end_time"]) for row in db.rows(settings.storage.blocks_table))
    assert stored == [
        (stamp("2026-10-19T09:00"), stamp("2026-10-19T10:00")),
        (stamp("2026-10-19T10:00"), stamp("2026-10-19T11:00")),
        (stamp("2026-10-19T11:00"), stamp("2026-10-19T11:30")),
    ]


def test_block_kept_whole_when_slots_disabled(db):
    settings = make_settings(block_slot_minutes=0)
    context = ServiceContext(settings=settings, gateway=SupabaseGateway(settings.supabase, _client=db))

    DeclarationService(context).upsert_block(
        USER, start_time="2026-10-19T09:00", end_time="2026-10-19T11:30", availability=True
    )

    assert len(db.rows(settings.storage.blocks_table)) == 1


def test_unknown_block_source_is_rejected(context, db, settings):
    result = DeclarationService(context).upsert_block(
        USER, start_time="2026-10-19T09:00", end_time="2026-10-19T10:00", availability=True, source="learned"
    )

    assert not result.success
    assert db.rows(settings.storage.blocks_table) == []


def test_replace_block_removes_previous_row(context, db, seed, settings):
    seed.block(USER, "2026-10-19T09:00", "2026-10-19T10:00", True)
    old_id = db.rows(settings.storage.blocks_table)[0]["id"]

    DeclarationService(context).upsert_block(
        USER,
        start_time="2026-10-19T14:00",
        end_time="2026-10-19T15:00",
        availability=False,
        replace_block_id=old_id,
    )

    [stored] = db.rows(settings.storage.blocks_table)
    assert stored["id"] != old_id
    assert stored["availability"] is False


def test_block_write_failure_is_reported(context, db, settings):
    db.fail(settings.storage.blocks_table, "upsert")

    result = DeclarationService(context).upsert_block(
        USER, start_time="2026-10-19T09:00", end_time="2026-10-19T10:00", availability=True
    )

    assert not result.success
    assert result.message


def test_list_blocks_filters_by_window(context, seed):
    seed.block(USER, "2026-10-19T09:00", "2026-10-19T10:00", True)
    seed.block(USER, "2026-10-21T09:00", "2026-10-21T10:00", True)
    seed.block(OTHER_USER, "2026-10-19T09:00", "2026-10-19T10:00", True)

    blocks = DeclarationService(context).list_blocks(
        USER, window_start=datetime(2026, 10, 19), window_end=datetime(2026, 10, 20)
    )

    assert [block.start_time for block in blocks] == [datetime(2026, 10, 19, 9, 0)]


def test_remove_block_is_scoped_to_user(context, db, seed, settings):
    seed.block(OTHER_USER, "2026-10-19T09:00", "2026-10-19T10:00", True)
    block_id = db.rows(settings.storage.blocks_table)[0]["id"]

    assert DeclarationService(context).remove_block(USER, block_id).success
    assert len(db.rows(settings.storage.blocks_table)) == 1


def test_record_event_answers_creates_event_blocks(context, db, settings):
    dates = [
        EventDate(id="d1", start_time=datetime(2026, 10, 19, 10), end_time=datetime(2026, 10, 19, 11)),
        EventDate(id="d2", start_time=datetime(2026, 10, 20, 10), end_time=datetime(2026, 10, 20, 11)),
    ]

    result = DeclarationService(context).record_event_answers(
        USER, event_id="ev-1", event_dates=dates, selected_date_ids=["d2"]
    )

    assert result.success
    stored = sorted(
        (row["start_time"], row["availability"], row["source"], row["event_id"])
        for row in db.rows(settings.storage.blocks_table)
    )
    assert stored == [
        (stamp("2026-10-19T10:00"), False, "event", "ev-1"),
        (stamp("2026-10-20T10:00"), True, "event", "ev-1"),
    ]


def test_replaced_block_survives_failed_save(context, db, seed, settings):
    seed.block(USER, "2026-10-19T09:00", "2026-10-19T10:00", True)
    db.fail(settings.storage.blocks_table, "upsert")

    result = DeclarationService(context).upsert_block(
        USER,
        start_time="2026-10-19T14:00",
        end_time="2026-10-19T15:00",
        availability=False,
        replace_block_id="block-1",
    )

    assert not result.success
    assert [row["id"] for row in db.rows(settings.storage.blocks_table)] == ["block-1"]
    assert (settings.storage.blocks_table, "delete") not in db.calls


def test_replacing_with_same_range_keeps_single_row(context, db, seed, settings):
    seed.block(USER, "2026-10-19T09:00", "2026-10-19T10:00", True)

    result = DeclarationService(context).upsert_block(
        USER,
        start_time="2026-10-19T09:00",
        end_time="2026-10-19T10:00",
        availability=False,
        replace_block_id="block-1",
    )

    assert result.success
    [stored] = db.rows(settings.storage.blocks_table)
    assert stored["id"] == "block-1"
    assert stored["availability"] is False


def test_failed_removal_of_replaced_block_is_a_warning(context, db, seed, settings):
    seed.block(USER, "2026-10-19T09:00", "2026-10-19T10:00", True)
    db.fail(settings.storage.blocks_table, "delete")

    result = DeclarationService(context).upsert_block(
        USER,
        start_time="2026-10-19T14:00",
        end_time="2026-10-19T15:00",
        availability=False,
        replace_block_id="block-1",
    )

    assert result.success
    assert result.message
    assert len(db.rows(settings.storage.blocks_table)) == 2


def test_unreadable_template_row_surfaces_as_data_source_error(context, seed):
    seed.template(USER, 1, "09:00", "18:00", True, source="imported")

    with pytest.raises(DataSourceError):
        DeclarationService(context).list_templates(USER)


def test_unconfigured_data_source_rejects_writes(unconfigured_context):
    result = DeclarationService(unconfigured_context).upsert_block(
        USER, start_time="2026-10-19T09:00", end_time="2026-10-19T10:00", availability=True
    )

    assert not result.success
