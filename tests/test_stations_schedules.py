from datetime import datetime
import pytest
from radarhub_core.errors import Conflict, NotFound, ValidationFailure
from radarhub_core.models import STATUS_ACTIVE, STATUS_INACTIVE, Schedule, Station
from radarhub_core.timewindow import operating_zone

ICT = operating_zone(7)


def at(hour, minute=0):
    return datetime(2025, 9, 9, hour, minute, tzinfo=ICT)


def _station(**kw):
    data = dict(name='Son Tra', latitude=16.1, longitude=108.3, elevation=620.0, distance_to_coast=1.5, note='x')
    data.update(kw)
    return Station(**data)


def test_create_allocates_ids(repos):
    a = repos.stations.create(_station())
    b = repos.stations.create(_station(name='Hon Ba'))
    assert (a.id, b.id) == (1, 2)


def test_caller_supplied_id_and_conflict(repos):
    repos.stations.create(_station(id=5))
    with pytest.raises(Conflict):
        repos.stations.create(_station(id=5))
    # allocation continues past the caller-chosen id
    assert repos.stations.create(_station(name='next')).id == 6


def test_partial_update_preserves_untouched_fields(repos, clock):
    st = repos.stations.create(_station())
    clock.advance(5)
    updated = repos.stations.update_partial(st.id, {'name': 'y'})
    assert updated.name == 'y'
    assert updated.note == 'x'
    assert updated.latitude == 16.1
    assert updated.created_at == st.created_at
    assert updated.updated_at > st.updated_at
    assert repos.stations.get(st.id) == updated


def test_partial_update_missing_station(repos):
    with pytest.raises(NotFound):
        repos.stations.update_partial(42, {'name': 'y'})


def test_partial_update_rejects_empty_name(repos):
    st = repos.stations.create(_station())
    with pytest.raises(ValidationFailure):
        repos.stations.update_partial(st.id, {'name': ''})


def test_update_note_and_full_update(repos, clock):
    st = repos.stations.create(_station())
    assert repos.stations.update_note(st.id, 'radar offline').note == 'radar offline'
    clock.advance(3)
    replaced = repos.stations.update(_station(id=st.id, name='New', note=''))
    assert replaced.created_at == st.created_at
    assert repos.stations.get(st.id).name == 'New'


def test_delete_twice(repos):
    st = repos.stations.create(_station())
    repos.stations.delete(st.id)
    with pytest.raises(NotFound):
        repos.stations.delete(st.id)


def test_station_without_schedules_is_inactive(repos):
    repos.stations.create(_station())
    assert repos.schedules.is_station_active_now(1, at(9)) is False


def test_station_activity_follows_schedule(repos):
    repos.stations.create(_station())
    repos.schedules.create(Schedule(station_id=1, start_hhmm='0800', end_hhmm='1700', commander='Lt. An'))
    assert repos.schedules.is_station_active_now(1, at(9)) is True
    assert repos.schedules.is_station_active_now(1, at(18)) is False


def test_list_with_status_derives_status(repos):
    repos.stations.create(_station(status=STATUS_ACTIVE))
    repos.stations.create(_station(name='night'))
    repos.schedules.create(Schedule(station_id=2, start_hhmm='2200', end_hhmm='0600'))
    listed = {s.id: s.status for s in repos.stations.list_with_status(at(23))}
    assert listed == {1: STATUS_INACTIVE, 2: STATUS_ACTIVE}
    # stored value is untouched
    assert repos.stations.get(1).status == STATUS_ACTIVE
    assert repos.stations.get_with_status(2, at(12)).status == STATUS_INACTIVE


def test_schedule_keys_group_by_station(repos, store):
    repos.schedules.create(Schedule(station_id=1, start_hhmm='0100', end_hhmm='0200'))
    repos.schedules.create(Schedule(station_id=10, start_hhmm='0100', end_hhmm='0200'))
    repos.schedules.create(Schedule(station_id=1, start_hhmm='0300', end_hhmm='0400'))
    assert store.exists('schedule:1:1')
    assert store.exists('schedule:10:2')
    assert [s.id for s in repos.schedules.list_by_station(1)] == [1, 3]
    assert len(repos.schedules.list()) == 3


def test_schedule_rejects_bad_hhmm(repos):
    with pytest.raises(ValidationFailure):
        repos.schedules.create(Schedule.model_construct(station_id=1, start_hhmm='2500', end_hhmm='0100'))
    with pytest.raises(ValueError):
        Schedule(station_id=1, start_hhmm='8:00', end_hhmm='0900')


def test_schedule_partial_update(repos, clock):
    sc = repos.schedules.create(Schedule(station_id=1, start_hhmm='0800', end_hhmm='1700', crew='A, B'))
    clock.advance(1)
    updated = repos.schedules.update_partial(1, sc.id, {'end_hhmm': '1800', 'phone': '0905'})
    assert (updated.start_hhmm, updated.end_hhmm, updated.crew, updated.phone) == ('0800', '1800', 'A, B', '0905')
    assert updated.created_at == sc.created_at
    with pytest.raises(ValidationFailure):
        repos.schedules.update_partial(1, sc.id, {'start_hhmm': '9999'})
    with pytest.raises(NotFound):
        repos.schedules.update_partial(2, sc.id, {'phone': '1'})


def test_schedule_delete(repos):
    sc = repos.schedules.create(Schedule(station_id=1, start_hhmm='0800', end_hhmm='1700'))
    repos.schedules.delete(1, sc.id)
    with pytest.raises(NotFound):
        repos.schedules.delete(1, sc.id)
    with pytest.raises(NotFound):
        repos.schedules.get(1, sc.id)


def test_delete_by_station(repos):
    repos.schedules.create(Schedule(station_id=3, start_hhmm='0800', end_hhmm='1700'))
    repos.schedules.create(Schedule(station_id=3, start_hhmm='1700', end_hhmm='0800'))
    repos.schedules.create(Schedule(station_id=4, start_hhmm='0800', end_hhmm='1700'))
    assert repos.schedules.delete_by_station(3) == 2
    assert repos.schedules.list_by_station(3) == []
    assert len(repos.schedules.list_by_station(4)) == 1


def test_corrupt_station_skipped(repos, store):
    repos.stations.create(_station())
    store.put('station:99', b'garbage')
    assert [s.id for s in repos.stations.list()] == [1]
