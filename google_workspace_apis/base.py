"""
BaseScript — runnable command-line tools on top of GoogleClient.

A subclass implements run() and gets, for free:
  - <log dir>/<scriptname>.log (rotating) plus stderr, shared with the
    google_workspace_apis loggers
  - self.client, a GoogleClient built from GOOGLE_* settings on first use
  - main(): --debug and subclass options via add_arguments(), timing,
    and the run() result printed to stdout as JSON

The log directory is WORKSPACE_APIS_LOG_DIR, default ~/.google_workspace_apis/logs.

    class OpenTasks(BaseScript):
        def run(self) -> dict:
            tasks = TasksClient(self.client).get_tasks().execute()
            return {"open": sum(not t.is_done for t in tasks.items)}

    if __name__ == "__main__":
        OpenTasks.main()
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import time
from abc import ABC, abstractmethod
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from .config import load_client_credentials
from .google_client import GoogleClient

DEFAULT_LOGS_DIR = "~/.google_workspace_apis/logs"
PACKAGE_LOGGER = "google_workspace_apis"

_LOG_FORMAT = logging.Formatter(
    "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def logs_dir() -> Path:
    return Path(os.environ.get("WORKSPACE_APIS_LOG_DIR", DEFAULT_LOGS_DIR)).expanduser()


def _script_handlers(log_file: Path) -> list[logging.Handler]:
    """Rotating file (2 MB, 5 generations) and stderr, same format."""
    to_file = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    to_stderr = logging.StreamHandler()
    for handler in (to_file, to_stderr):
        handler.setFormatter(_LOG_FORMAT)
    return [to_file, to_stderr]


class BaseScript(ABC):
    """A CLI tool whose run() result is printed as JSON."""

    def __init__(self, log_level: int = logging.INFO) -> None:
        self.script_name: str = type(self).__name__.lower()
        self.logger: logging.Logger = self._configure_logging(log_level)
        self._client: Optional[GoogleClient] = None

    # ── Logging ───────────────────────────────────────────────────────────────

    def _configure_logging(self, log_level: int) -> logging.Logger:
        script_logger = logging.getLogger(self.script_name)
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for lg in (script_logger, package_logger):
            lg.setLevel(log_level)

        # handlers are attached once per process
        if not script_logger.handlers:
            directory = logs_dir()
            directory.mkdir(parents=True, exist_ok=True)
            handlers = _script_handlers(directory / f"{self.script_name}.log")
            for lg in (script_logger, package_logger):
                if lg is script_logger or not lg.handlers:
                    for handler in handlers:
                        lg.addHandler(handler)
        return script_logger

    # ── Google access ─────────────────────────────────────────────────────────

    @property
    def client(self) -> GoogleClient:
        """GoogleClient from load_client_credentials(), created on first access."""
        if self._client is None:
            self._client = GoogleClient(load_client_credentials(), auto_refresh=True)
        return self._client

    @client.setter
    def client(self, value: GoogleClient) -> None:
        self._client = value

    # ── Subclass interface ────────────────────────────────────────────────────

    @abstractmethod
    def run(self) -> dict[str, Any]:
        """Do the work and return a JSON-serialisable dict (datetimes go through str)."""

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Register script options; each becomes a keyword argument of __init__."""

    # ── CLI entrypoint ────────────────────────────────────────────────────────

    @classmethod
    def main(cls, argv: Optional[list[str]] = None) -> None:
        summary = (cls.__doc__ or cls.__name__).strip().splitlines()[0]
        parser = argparse.ArgumentParser(description=summary)
        parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
        cls.add_arguments(parser)
        options = vars(parser.parse_args(argv))

        debug = options.pop("debug")
        script = cls(log_level=logging.DEBUG if debug else logging.INFO, **options)

        started = time.monotonic()
        try:
            result = script.run()
        except Exception:
            script.logger.exception("Script failed after %.2fs", time.monotonic() - started)
            raise
        script.logger.info("Completed in %.2fs", time.monotonic() - started)
        print(json.dumps(result, indent=2, default=str))
