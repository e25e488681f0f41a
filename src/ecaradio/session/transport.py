"""
Live transport: start and stop monitoring/recording for the current Session.
"""

import logging

from ecaradio.errors import ConfigurationError, EcaradioError
from ecaradio.render import commands as cmd

logger = logging.getLogger(__name__)


class LiveTransport:
    """Runs the selected Session's chainsetup on the engine."""

    def __init__(self, ctx):
        self.ctx = ctx
        self.playing = False
        self._recording = False
        self._recorded_tracks = []

    def start(self) -> None:
        """
        Build and start the session's chainsetup, then wire JACK ports.

        Routing connections are applied only after ``start``: the engine's
        ports do not exist before the chain runs. If routing fails the engine
        is stopped again and the transport stays stopped.

        Raises:
            ConfigurationError: No session selected, or an unresolvable I/O spec
            EngineError: The engine or jack_connect failed
        """
        session = self.ctx.session
        if session is None:
            raise ConfigurationError("No session selected")

        audio_format = self.ctx.config.get("session", "audio_format")
        recording = self.ctx.record_armed
        # Same condition emit_session_commands uses for record chains
        recorded_tracks = [t.name for t in session.ordered_tracks() if recording and t.record]
        commands = cmd.emit_session_commands(session, self.ctx, audio_format)
        commands.extend([cmd.connect_chainsetup(), cmd.start()])

        with self.ctx.exclusive_engine() as engine:
            cmd.execute(engine, commands)
            try:
                self.ctx.apply_routing()
            except EcaradioError as e:
                logger.error(f"Routing failed for session {session.name}, stopping engine: {e}")
                cmd.execute(engine, [cmd.stop()])
                raise

        self.playing = True
        self._recording = recording
        self._recorded_tracks = recorded_tracks
        mode = "recording" if recording else "monitoring"
        logger.info(f"Session {session.name} started ({mode})")

    def stop(self) -> list:
        """
        Stop the engine and advance takes for tracks that were recording.

        Uses the arm state and record chains captured at start, so toggling
        record-arm or a track's record flag while running cannot add or drop
        a take.

        Returns:
            Tracks whose take advanced
        """
        if not self.playing:
            logger.warning("Stop requested but transport is not running")
            return []

        with self.ctx.exclusive_engine() as engine:
            cmd.execute(engine, [cmd.stop()])
        self.playing = False

        advanced = self.ctx.session.complete_takes(self._recording, self._recorded_tracks)
        self._recording = False
        self._recorded_tracks = []
        logger.info(f"Session {self.ctx.session.name} stopped, {len(advanced)} takes completed")
        return advanced
