import pytest
from radarhub_core.errors import NotFound, ValidationFailure
from radarhub_core.models import Role, RoleName


def test_ensure_defaults_only_fills_gaps(repos):
    repos.roles.create(Role(name=RoleName.HQ, description='custom'))
    created = repos.roles.ensure_defaults()
    assert sorted(r.name.value for r in created) == ['ADMIN', 'OPERATOR']
    assert repos.roles.ensure_defaults() == []
    hq = [r for r in repos.roles.list() if r.name == RoleName.HQ]
    assert [r.description for r in hq] == ['custom']


def test_role_update_and_delete(repos, clock):
    role = repos.roles.create(Role(name=RoleName.ADMIN))
    clock.advance(4)
    updated = repos.roles.update_partial(role.id, {'description': 'root'})
    assert updated.description == 'root'
    assert updated.updated_at == clock.now
    with pytest.raises(ValidationFailure):
        repos.roles.update_partial(role.id, {'id': 3})
    repos.roles.delete(role.id)
    with pytest.raises(NotFound):
        repos.roles.get(role.id)
