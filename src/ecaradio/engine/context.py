"""
Application context: the process-wide state every pass shares.

Holds the engine connection (created on first use, torn down by reinit), the
selected Session, the global record-arm flag, and the queue of routing
connections waiting for the engine chain to come up.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, List, Optional

from ecaradio.config import Config
from ecaradio.engine.eci import EngineClient
from ecaradio.engine.routing import JackPortGraph, RoutingConnection

logger = logging.getLogger(__name__)


class AppContext:
    """Explicit replacement for global engine/session/routing state."""

    def __init__(
        self,
        config: Config,
        engine_factory: Callable[[Config], object] = EngineClient,
        port_graph=None,
    ):
        """
        Args:
            config: Loaded configuration
            engine_factory: Builds the engine client from config
            port_graph: Routing fabric; defaults to JackPortGraph
        """
        self.config = config
        self.engine_factory = engine_factory
        self.port_graph = port_graph if port_graph is not None else JackPortGraph()

        self.session = None
        self.record_armed = False

        self._engine = None
        self._lock = threading.RLock()
        self._connections: List[RoutingConnection] = []
        self._port_suffix = 0

    # -- engine lifecycle ----------------------------------------------------

    @property
    def engine(self):
        """The engine client, created if absent."""
        if self._engine is None:
            self._engine = self.engine_factory(self.config)
            logger.debug("Engine client created")
        return self._engine

    def reinit_engine(self):
        """Tear down the current engine client and create a fresh one."""
        with self._lock:
            self._close_engine()
            logger.info("Reinitialising engine")
            return self.engine

    def _close_engine(self) -> None:
        engine, self._engine = self._engine, None
        if engine is not None:
            engine.close()

    @contextmanager
    def exclusive_engine(self):
        """
        Hold the engine for one pass.

        Render, measure and split passes all run inside this block, so they
        never interleave commands on the shared connection. The lock is
        re-entrant: a render pass may run a measurement pass inside it.
        """
        with self._lock:
            yield self.engine

    def close(self) -> None:
        with self._lock:
            self._close_engine()

    # -- session -------------------------------------------------------------

    def select_session(self, session) -> None:
        """Make ``session`` the single current Session."""
        self.session = session
        logger.info(f"Selected session: {session.name}")

    # -- routing queue -------------------------------------------------------

    def reset_routing(self) -> None:
        """Drop queued connections and restart port numbering."""
        self._connections = []
        self._port_suffix = 0

    def next_port_suffix(self) -> int:
        self._port_suffix += 1
        return self._port_suffix

    def queue_connection(self, source_owner: str, source_port: str,
                         sink_owner: str, sink_port: str) -> RoutingConnection:
        connection = RoutingConnection(source_owner, source_port, sink_owner, sink_port)
        self._connections.append(connection)
        logger.debug(f"Queued connection {connection.source} -> {connection.sink}")
        return connection

    @property
    def pending_connections(self) -> List[RoutingConnection]:
        return list(self._connections)

    def apply_routing(self) -> int:
        """
        Apply every queued connection to the routing fabric.

        Only call this once the engine chain is running. The queue is emptied
        as connections are made, so a failure leaves the unapplied ones queued.

        Returns:
            Number of connections made
        """
        applied = 0
        while self._connections:
            connection = self._connections[0]
            self.port_graph.connect(
                connection.source_owner,
                connection.source_port,
                connection.sink_owner,
                connection.sink_port,
            )
            self._connections.pop(0)
            applied += 1
        logger.info(f"Applied {applied} routing connections")
        return applied

    @property
    def engine_client_name(self) -> str:
        return self.config.get("engine", "client_name", "ecasound")

    def __repr__(self) -> str:
        session: Optional[str] = self.session.name if self.session else None
        return f"AppContext(session={session}, record_armed={self.record_armed})"
