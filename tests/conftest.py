"""
Shared fixtures: a scripted fake engine and a fast-polling config.
"""

import copy
import pytest
from unittest.mock import MagicMock

from ecaradio.config import Config
from ecaradio.engine.context import AppContext
from ecaradio.errors import EngineCommandError


class FakeEngine:
    """
    Records every ECI command and answers the few that return values.

    ai-get-length answers from ``lengths`` keyed by the last ai-select argument;
    engine-status pops from ``statuses`` and then keeps answering
    ``default_status``. ``on_start`` runs when a "start" command arrives;
    ``fail_on`` makes the named verb raise.
    """

    def __init__(self, lengths=None, statuses=None, default_status="finished",
                 on_start=None, fail_on=None):
        self.lines = []
        self.lengths = dict(lengths or {})
        self.statuses = list(statuses or [])
        self.default_status = default_status
        self.on_start = on_start
        self.fail_on = fail_on
        self.closed = False
        self._selected_input = None

    def command(self, line):
        line = str(line)
        self.lines.append(line)
        verb, _, arg = line.partition(" ")

        if verb == self.fail_on:
            raise EngineCommandError(line, "scripted failure")
        if verb == "ai-select":
            self._selected_input = arg
        elif verb == "ai-get-length":
            return self.lengths.get(self._selected_input, 0.0)
        elif verb == "engine-status":
            return self.statuses.pop(0) if self.statuses else self.default_status
        elif verb == "start" and self.on_start is not None:
            self.on_start()
        return None

    def engine_status(self):
        return self.command("engine-status")

    def close(self):
        self.closed = True

    @property
    def verbs(self):
        return [line.split(" ", 1)[0] for line in self.lines]

    def index(self, line):
        return self.lines.index(line)


@pytest.fixture
def config(tmp_path):
    """Default config with near-instant polling and paths under tmp_path."""
    data = copy.deepcopy(Config.DEFAULT_CONFIG)
    data["engine"].update(
        settle_delay_seconds=0.0,
        poll_interval_seconds=0.01,
        max_poll_interval_seconds=0.01,
        poll_timeout_seconds=1.0,
    )
    data["render"]["work_dir"] = str(tmp_path / "ewf")
    data["session"]["root"] = str(tmp_path / "sessions")
    return Config(data)


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def port_graph():
    return MagicMock()


@pytest.fixture
def ctx(config, fake_engine, port_graph):
    """AppContext wired to the fake engine and a mock routing fabric."""
    return AppContext(config, engine_factory=lambda cfg: fake_engine, port_graph=port_graph)
