from radarhub_core.config import Settings
from radarhub_core.init_db import init_db
from radarhub_core.models import RoleName


def test_init_db_idempotent(tmp_path):
    settings = Settings(data_dir=str(tmp_path / 'leveldb'), db_url=None, store_file='store.db')
    repos = init_db(settings)
    try:
        assert sorted(r.name.value for r in repos.roles.list()) == ['ADMIN', 'HQ', 'OPERATOR']
    finally:
        repos.store.close()
    # second run over the same directory creates nothing new
    repos = init_db(settings)
    try:
        roles = repos.roles.list()
        assert len(roles) == 3
        assert {r.name for r in roles} == set(RoleName)
        assert (tmp_path / 'leveldb' / 'store.db').exists()
    finally:
        repos.store.close()


def test_init_db_without_roles(tmp_path):
    settings = Settings(data_dir=str(tmp_path), db_url=None, store_file='store.db', tz_offset_hours=0)
    repos = init_db(settings, ensure_roles=False)
    try:
        assert repos.roles.list() == []
        assert repos.schedules.tz_offset_hours == 0
    finally:
        repos.store.close()
