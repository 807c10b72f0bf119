import logging
import pytest
from radarhub_core.logging_config import RedactionFilter, configure_logging


@pytest.fixture
def restore_filters():
    yield
    loggers = [logging.getLogger()] + [logging.getLogger(n) for n in list(logging.root.manager.loggerDict)]
    for lg in loggers:
        if not isinstance(lg, logging.Logger):
            continue
        for f in [f for f in lg.filters if isinstance(f, RedactionFilter)]:
            lg.removeFilter(f)


def test_redact_patterns():
    assert RedactionFilter.redact('{"username": "a", "password": "s3cret"}') == '{"username": "a", "password": "[REDACTED]"}'
    assert RedactionFilter.redact("{'password': 'pw'}") == "{'password': '[REDACTED]'}"
    assert RedactionFilter.redact('login password=hunter2 ok') == 'login password=[REDACTED] ok'
    assert RedactionFilter.redact('nothing here') == 'nothing here'


def test_filter_formats_args_once():
    record = logging.LogRecord('radarhub_core', logging.INFO, __file__, 1,
                               'update %s password=%s', ('op1', 'pw'), None)
    assert RedactionFilter().filter(record)
    assert record.getMessage() == 'update op1 password=[REDACTED]'


def test_configure_logging_attaches_to_handlers(tmp_path, caplog, restore_filters):
    configure_logging('INFO', config_file=tmp_path / 'missing.ini')
    logging.getLogger('radarhub_core.repositories.user').warning('payload %s', {'password': 'pw'})
    assert 'pw' not in caplog.text.replace('password', '')
    assert '[REDACTED]' in caplog.text
