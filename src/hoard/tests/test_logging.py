import importlib
import logging

import pytest
import structlog
from structlog.testing import capture_logs

import hoard
from hoard import Hoard, configure_logging


@pytest.fixture(autouse=True)
def restore_structlog():
    saved = structlog.get_config()
    structlog.reset_defaults()
    yield
    structlog.configure(**saved)


def test_import_keeps_host_configuration(tmp_path):
    processors = [structlog.processors.KeyValueRenderer()]
    structlog.configure(processors=processors)

    importlib.reload(hoard.logging_config)
    depositor = Hoard(tmp_path).create_depositor("k", int)
    depositor.store(1)
    depositor.retrieve()

    assert structlog.get_config()["processors"] == processors


def test_slot_events_are_emitted(tmp_path):
    depositor = Hoard(tmp_path).create_depositor("k", int)
    with capture_logs() as logs:
        depositor.store(1)
        depositor.retrieve()
        depositor.delete()
    assert [entry["event"] for entry in logs] == [
        "slot_stored",
        "slot_retrieved",
        "slot_deleted",
    ]
    assert all(entry["log_level"] == "debug" for entry in logs)


def test_configure_logging_filters_by_level(tmp_path, capsys):
    depositor = Hoard(tmp_path).create_depositor("k", int)

    configure_logging(logging.INFO)
    depositor.store(1)
    assert "slot_stored" not in capsys.readouterr().out

    configure_logging(logging.DEBUG)
    depositor.store(2)
    assert '"event": "slot_stored"' in capsys.readouterr().out
