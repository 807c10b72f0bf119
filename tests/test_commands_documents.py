import pytest
from radarhub_core.errors import Conflict, NotFound, ValidationFailure
from radarhub_core.models import Command, Document


def test_command_ack_flow(repos, clock):
    cmd = repos.commands.create(Command(to_station_id=1, content='Raise readiness', from_user_id='3'))
    assert cmd.sent_at == cmd.created_at == clock.now
    assert cmd.acknowledged_at is None
    assert [c.id for c in repos.commands.list_unacknowledged(1)] == [cmd.id]

    clock.advance(30)
    acked = repos.commands.acknowledge(cmd.id)
    assert acked.acknowledged_at == clock.now
    assert repos.commands.list_unacknowledged(1) == []
    assert repos.commands.get(cmd.id).acknowledged


def test_acknowledge_twice_is_conflict(repos):
    cmd = repos.commands.create(Command(to_station_id=1, content='x'))
    repos.commands.acknowledge(cmd.id, ts=1234)
    with pytest.raises(Conflict):
        repos.commands.acknowledge(cmd.id, ts=9999)
    assert repos.commands.get(cmd.id).acknowledged_at == 1234


def test_acknowledge_missing_command(repos):
    with pytest.raises(NotFound):
        repos.commands.acknowledge(7)


def test_unacknowledged_json_omits_field(repos, store):
    cmd = repos.commands.create(Command(to_station_id=2, content='x'))
    assert 'acknowledged_at' not in store.get_json(f'command:{cmd.id}')


def test_command_listing(repos):
    repos.commands.create(Command(to_station_id=1, content='a'))
    repos.commands.create(Command(to_station_id=2, content='b'))
    repos.commands.create(Command(to_station_id=1, content='c'))
    assert [c.content for c in repos.commands.list_by_station(1)] == ['a', 'c']
    assert len(repos.commands.list()) == 3
    assert repos.commands.list_unacknowledged(3) == []


def test_command_requires_content(repos):
    with pytest.raises(ValidationFailure):
        repos.commands.create(Command(to_station_id=1, content='  '))


def test_command_delete_twice(repos):
    cmd = repos.commands.create(Command(to_station_id=1, content='a'))
    repos.commands.delete(cmd.id)
    with pytest.raises(NotFound):
        repos.commands.delete(cmd.id)


def _doc(**kw):
    data = dict(title='Radar manual', description='v2', file_url='/files/manual.pdf',
                file_name='manual.pdf', file_size=2048, file_type='application/pdf', uploaded_by=1)
    data.update(kw)
    return Document(**data)


def test_document_ids_use_persisted_counter(repos, store):
    assert repos.documents.create(_doc()).id == 1
    assert repos.documents.create(_doc(title='b')).id == 2
    assert store.get_json('document_counter') == 2
    repos.documents.delete(2)
    # ids are never reused
    assert repos.documents.create(_doc(title='c')).id == 3


def test_document_partial_update(repos, clock):
    d = repos.documents.create(_doc())
    clock.advance(2)
    updated = repos.documents.update_partial(d.id, {'description': 'v3', 'file_size': 4096})
    assert updated.title == 'Radar manual'
    assert updated.file_size == 4096
    assert updated.created_at == d.created_at
    assert updated.updated_at == clock.now
    with pytest.raises(ValidationFailure):
        repos.documents.update_partial(d.id, {'uploaded_by': 9})


def test_document_full_update_preserves_created_at(repos, clock):
    d = repos.documents.create(_doc())
    clock.advance(2)
    replaced = repos.documents.update(_doc(id=d.id, title='Renamed', created_at=0))
    assert replaced.created_at == d.created_at
    with pytest.raises(NotFound):
        repos.documents.update(_doc(id=77))


def test_document_listing_and_delete(repos, store):
    repos.documents.create(_doc(uploaded_by=1))
    repos.documents.create(_doc(uploaded_by=2))
    store.put('document:50', b'[]')
    assert len(repos.documents.list()) == 2
    assert [d.uploaded_by for d in repos.documents.list_by_uploader(2)] == [2]
    repos.documents.delete(1)
    with pytest.raises(NotFound):
        repos.documents.get(1)
    with pytest.raises(NotFound):
        repos.documents.delete(1)


def test_document_requires_title(repos):
    with pytest.raises(ValidationFailure):
        repos.documents.create(_doc(title=''))
