"""
Demo runner - publishes a sample dashboard and drives update() periodically

    shuffleboard-demo --record --broadcast --duration 30

Builds an "Example" tab (toggle, supplied uptime, a list layout holding a
Sendable motor), optionally records the session to .sbr files and mirrors
the namespace to WebSocket clients until interrupted.
"""

__version__ = "1.0.0"

import argparse
import asyncio
import logging
import os
import signal
import time

from shuffleboard.config import ConfigError, ShuffleboardConfig
from shuffleboard.core.recording_writer import RecordingError, RecordingWriter
from shuffleboard.core.sendable import Sendable, SendableBuilder
from shuffleboard.foundation.broadcaster import NamespaceBroadcaster
from shuffleboard.models.enums import BuiltInLayouts, BuiltInWidgets, EventImportance
from shuffleboard.models.recording_config import RecordingConfig
from shuffleboard.services.event_bus import EventBus, Events
from shuffleboard.services.logger import cleanup_logging, setup_logging
from shuffleboard.shuffleboard import Shuffleboard

logger = logging.getLogger(__name__)


class DemoMotor(Sendable):
    """Speed controller stand-in; an actuator, so only settable when enabled."""

    def __init__(self):
        self.speed = 0.0

    def set_speed(self, value: float) -> None:
        self.speed = max(-1.0, min(1.0, float(value)))

    def stop(self) -> None:
        self.speed = 0.0

    def init_sendable(self, builder: SendableBuilder) -> None:
        builder.set_smart_dashboard_type("Motor Controller")
        builder.set_actuator(True)
        builder.set_safe_state(self.stop)
        builder.add_double_property("Value", lambda: self.speed, self.set_speed)


class DemoRunner:
    """
    Owns the demo dashboard and its periodic update loop.

    Usage:
        runner = DemoRunner(config)
        await runner.start()  # Runs until interrupted or duration elapses
    """

    def __init__(
        self,
        config: ShuffleboardConfig,
        record: bool = False,
        broadcast: bool = False,
        duration: float | None = None,
        file_name_format: str | None = None,
    ):
        self.config = config
        self.duration = duration
        self.event_bus = EventBus()
        self.dashboard = Shuffleboard(event_bus=self.event_bus)
        self.motor = DemoMotor()
        self.writer: RecordingWriter | None = None
        self.broadcaster: NamespaceBroadcaster | None = None

        if record:
            recording_config = RecordingConfig(recordings_dir=str(config.recordings_dir))
            self.writer = RecordingWriter.from_config(
                self.dashboard.namespace, recording_config, self.event_bus
            )
            if file_name_format:
                self.dashboard.set_recording_file_name_format(file_name_format)
        if broadcast:
            self.broadcaster = NamespaceBroadcaster(
                self.dashboard.namespace, config.host, config.port
            )

        self._record = record
        self._running = False
        self._started_at = time.monotonic()
        self._tasks: list[asyncio.Task] = []

        self.event_bus.subscribe(Events.DIAGNOSTIC, self._on_diagnostic)

    def _on_diagnostic(self, event: dict) -> None:
        logger.warning(f"Dashboard diagnostic: {event['data']['message']}")

    def build_dashboard(self) -> None:
        tab = self.dashboard.get_tab("Example")
        tab.add("My Boolean", True).with_widget(BuiltInWidgets.TOGGLE_BUTTON).with_position(0, 0)
        tab.add_number("Uptime", lambda: round(time.monotonic() - self._started_at, 2)).with_widget(
            BuiltInWidgets.TEXT_VIEW
        )
        drive = tab.get_layout("Drive", BuiltInLayouts.LIST).with_size(2, 3)
        drive.add("Motor", self.motor).with_widget(BuiltInWidgets.SPEED_CONTROLLER)
        drive.add_number("Motor Speed", lambda: self.motor.speed)
        self.dashboard.select_tab("Example")

    async def _update_loop(self) -> None:
        period = self.config.update_period
        while self._running:
            self.dashboard.update()
            if self.duration is not None and time.monotonic() - self._started_at >= self.duration:
                logger.info("Demo duration elapsed")
                await self.stop()
                return
            await asyncio.sleep(period)

    async def start(self) -> None:
        self._running = True
        self.event_bus.start()
        self.build_dashboard()
        self.dashboard.update()

        if self._record:
            self.dashboard.start_recording()
            self.dashboard.add_event_marker("Demo started", "Runner is up", EventImportance.LOW)

        self._tasks.append(asyncio.create_task(self._update_loop()))
        if self.broadcaster is not None:
            self._tasks.append(asyncio.create_task(self.broadcaster.start()))
            logger.info(f"  WebSocket: {self.config.ws_url}")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(self.stop()))

        logger.info("Dashboard running. Press Ctrl+C to stop.")
        try:
            await asyncio.gather(*self._tasks)
        except asyncio.CancelledError:
            pass

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info("Stopping dashboard...")

        if self._record:
            self.dashboard.add_event_marker("Demo stopped", importance=EventImportance.LOW)
            self.dashboard.stop_recording()
        self.dashboard.disable_actuator_widgets()

        if self.broadcaster is not None:
            await self.broadcaster.stop()
        if self.writer is not None:
            self.writer.close()
        for task in self._tasks:
            if task is not asyncio.current_task():
                task.cancel()
        self.event_bus.stop()

    def get_status(self) -> dict:
        return {
            "running": self._running,
            "recording": self.dashboard.recording.get_status(),
            "writer": self.writer.get_status() if self.writer else None,
            "broadcaster": self.broadcaster.get_stats() if self.broadcaster else None,
            "diagnostics": self.dashboard.reporter.error_count,
        }


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Shuffleboard demo dashboard")
    parser.add_argument("--record", action="store_true", help="Record the session to .sbr files")
    parser.add_argument("--broadcast", action="store_true", help="Mirror the namespace over WebSocket")
    parser.add_argument("--port", type=int, help="WebSocket port")
    parser.add_argument("--recordings-dir", help="Directory for recording files")
    parser.add_argument("--file-name-format", help="Recording file name template, e.g. demo-${time}")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args()

    # CLI overrides go through the environment like every other setting
    if args.port:
        os.environ["SHUFFLEBOARD_PORT"] = str(args.port)
    if args.recordings_dir:
        os.environ["SHUFFLEBOARD_RECORDINGS_DIR"] = args.recordings_dir

    setup_logging()
    try:
        config = ShuffleboardConfig().validate()
    except ConfigError as e:
        logger.critical(f"Configuration validation failed: {e}")
        raise SystemExit(1)

    try:
        runner = DemoRunner(
            config,
            record=args.record,
            broadcast=args.broadcast,
            duration=args.duration,
            file_name_format=args.file_name_format,
        )
    except RecordingError as e:
        logger.critical(f"Cannot record: {e}")
        raise SystemExit(1)

    try:
        asyncio.run(runner.start())
    finally:
        logger.info(f"Final status: {runner.get_status()}")
        cleanup_logging()


if __name__ == "__main__":
    main()
