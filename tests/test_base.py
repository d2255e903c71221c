import argparse
import json
import logging

import pytest

from google_workspace_apis.base import BaseScript
from google_workspace_apis.google_client import GoogleClient


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("WORKSPACE_APIS_LOG_DIR", str(tmp_path))
    yield tmp_path
    for name in ("google_workspace_apis", "counttasks", "explodes"):
        logger = logging.getLogger(name)
        logger.setLevel(logging.NOTSET)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


class CountTasks(BaseScript):
    """Count things and report them."""

    def __init__(self, log_level=logging.INFO, limit=3):
        super().__init__(log_level=log_level)
        self.limit = limit

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--limit", type=int, default=3)

    def run(self):
        self.logger.info("Counting up to %d", self.limit)
        return {"count": self.limit}


class Explodes(BaseScript):
    def run(self):
        raise RuntimeError("boom")


def test_main_prints_json_and_logs(capsys, log_dir):
    CountTasks.main(["--limit", "7"])

    assert json.loads(capsys.readouterr().out) == {"count": 7}
    log_text = (log_dir / "counttasks.log").read_text()
    assert "Counting up to 7" in log_text
    assert "Completed in" in log_text


def test_debug_flag_sets_level():
    CountTasks.main(["--debug"])
    assert logging.getLogger("counttasks").level == logging.DEBUG
    assert logging.getLogger("google_workspace_apis").level == logging.DEBUG


def test_failure_is_logged_and_reraised(log_dir):
    with pytest.raises(RuntimeError, match="boom"):
        Explodes.main([])
    assert "Script failed" in (log_dir / "explodes.log").read_text()


def test_client_can_be_injected(credentials):
    script = CountTasks()
    client = GoogleClient(credentials)
    script.client = client
    assert script.client is client
