import itertools
from datetime import date, datetime, timedelta, timezone

import pytest

from metricdaily.core.constants import AuditAction
from metricdaily.core.exceptions import InvariantViolation, NotFound, ValidationFailed
from metricdaily.schemas.settings import UserSettingsUpdate
from metricdaily.schemas.target import UPHTargetCreate, UPHTargetUpdate
from metricdaily.schemas.work_log import CountField, WorkLogUpsert
from metricdaily.services.tracker import TrackerService


NOW = datetime(2024, 7, 15, 18, 0, tzinfo=timezone.utc)
DAY = date(2024, 7, 15)


@pytest.fixture
def service(store):
    # One second per audited call keeps the trail order deterministic
    ticks = itertools.count()
    return TrackerService(store, clock=lambda: NOW + timedelta(seconds=next(ticks)))


def add_meeting(service: TrackerService):
    return service.add_target(UPHTargetCreate(name="Meeting", target_uph=9.0, docs_per_unit=10, videos_per_unit=1.5))


def log_payload(**kw) -> WorkLogUpsert:
    values = dict(date=DAY, start_time="14:00", end_time="22:30", break_duration_minutes=30,
                  documents_completed=100, video_sessions_completed=20)
    values.update(kw)
    return WorkLogUpsert(**values)


def actions(service: TrackerService) -> list[str]:
    return [e.action for e in service.list_audit_logs()]


def test_save_work_log_derives_hours_and_defaults_target(service):
    meeting = add_meeting(service)
    log = service.save_work_log(log_payload())

    assert log.hours_worked == 8.0
    assert log.target_id == meeting.id
    entry = service.list_audit_logs()[0]
    assert entry.action == AuditAction.create_work_log.value
    assert entry.entity_id == log.id
    assert entry.previous_state is None
    assert entry.new_state["documents_completed"] == 100


def test_save_same_date_updates_entry(service):
    first = service.save_work_log(log_payload())
    second = service.save_work_log(log_payload(documents_completed=150, start_time="2:00 PM"))

    assert second.id == first.id
    assert second.start_time == "14:00"
    assert len(service.list_work_logs()) == 1
    entry = [e for e in service.list_audit_logs() if e.action == "UPDATE_WORK_LOG"][0]
    assert entry.previous_state["documents_completed"] == 100
    assert entry.new_state["documents_completed"] == 150


@pytest.mark.parametrize(
    "changes",
    [
        {"start_time": "14:00", "end_time": "14:30", "break_duration_minutes": 30},
        {"start_time": "25:99"},
        {"documents_completed": -1},
        {"break_duration_minutes": -5},
    ],
)
def test_invalid_work_logs_are_rejected(service, changes):
    with pytest.raises(ValidationFailed):
        service.save_work_log(log_payload(**changes))
    assert service.list_work_logs() == []
    assert service.list_audit_logs() == []


def test_moving_a_log_onto_a_taken_date_is_rejected(service):
    service.save_work_log(log_payload())
    other = service.save_work_log(log_payload(date=date(2024, 7, 16)))

    with pytest.raises(ValidationFailed):
        service.update_work_log(other.id, log_payload(date=DAY))


def test_unknown_target_or_log(service):
    with pytest.raises(ValidationFailed):
        service.save_work_log(log_payload(target_id="missing"))
    with pytest.raises(NotFound):
        service.update_work_log("missing", log_payload())


def test_quick_update(service):
    service.save_work_log(log_payload())

    log = service.quick_update_count(DAY, CountField.documents_completed, 1)
    assert log.documents_completed == 101
    log = service.quick_update_count(DAY, CountField.video_sessions_completed, -20)
    assert log.video_sessions_completed == 0

    with pytest.raises(ValidationFailed):
        service.quick_update_count(DAY, CountField.video_sessions_completed, -1)
    with pytest.raises(NotFound):
        service.quick_update_count(date(2024, 7, 16), CountField.documents_completed, 1)
    assert actions(service).count("UPDATE_WORK_LOG_QUICK_COUNT") == 2


def test_finalize_and_delete(service):
    log = service.save_work_log(log_payload())
    assert service.finalize_work_log(log.id).is_finalized

    service.delete_work_log(log.id)
    assert service.list_work_logs() == []
    assert actions(service)[:2] == ["DELETE_WORK_LOG", "FINALIZE_WORK_LOG"]
    with pytest.raises(NotFound):
        service.delete_work_log(log.id)


def test_target_validation(service):
    add_meeting(service)
    with pytest.raises(ValidationFailed):
        service.add_target(UPHTargetCreate(name="  meeting ", target_uph=5, docs_per_unit=10, videos_per_unit=1))
    with pytest.raises(ValidationFailed):
        service.add_target(UPHTargetCreate(name="Zero", target_uph=5, docs_per_unit=0, videos_per_unit=1))
    with pytest.raises(ValidationFailed):
        service.add_target(UPHTargetCreate(name="Rate", target_uph=0, docs_per_unit=10, videos_per_unit=1))
    assert len(service.list_targets()) == 1


def test_update_target_partial(service):
    meeting = add_meeting(service)
    updated = service.update_target(meeting.id, UPHTargetUpdate(target_uph=9.5))

    assert updated.target_uph == 9.5
    assert updated.name == "Meeting"
    assert updated.is_active


def test_activate_and_delete_targets(service):
    meeting = add_meeting(service)
    minimum = service.add_target(UPHTargetCreate(name="Minimum", target_uph=7.5, docs_per_unit=10, videos_per_unit=1.5))
    assert not minimum.is_active

    service.set_active_target(minimum.id)
    assert service.get_active_target().id == minimum.id
    entry = service.list_audit_logs()[0]
    assert entry.action == "SET_ACTIVE_UPH_TARGET"
    assert entry.previous_state["id"] == meeting.id

    with pytest.raises(InvariantViolation):
        service.delete_target(minimum.id)
    service.delete_target(meeting.id)
    assert [t.id for t in service.list_targets()] == [minimum.id]


def test_duplicate_target_names(service):
    meeting = add_meeting(service)

    copy = service.duplicate_target(meeting.id)
    again = service.duplicate_target(meeting.id)

    assert copy.name == "Meeting (Copy)"
    assert again.name == "Meeting (Copy 2)"
    assert not copy.is_active and copy.target_uph == meeting.target_uph


def test_settings_defaults_and_save(service):
    defaults = service.get_settings()
    assert (defaults.default_start_time, defaults.default_end_time) == ("14:00", "22:30")
    assert defaults.default_break_minutes == 65

    saved = service.save_settings(UserSettingsUpdate(default_start_time="9:00 AM", default_break_minutes=30))
    assert saved.default_start_time == "09:00"
    assert service.get_settings().default_break_minutes == 30
    assert actions(service) == ["UPDATE_SETTINGS"]

    with pytest.raises(ValidationFailed):
        service.save_settings(UserSettingsUpdate(default_end_time="later"))


def test_export_import_and_clear(service):
    add_meeting(service)
    service.save_work_log(log_payload())

    state = service.export_state()
    assert state.exported_at > NOW
    assert len(state.work_logs) == 1

    service.clear_all_data()
    assert service.list_work_logs() == [] and service.list_targets() == []
    assert "SYSTEM_CLEAR_ALL_DATA" in actions(service)

    service.import_state(state)
    assert len(service.list_work_logs()) == 1
    assert service.get_active_target().name == "Meeting"
    assert "SYSTEM_IMPORT_DATA" in actions(service)
