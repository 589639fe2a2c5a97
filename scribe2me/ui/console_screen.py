"""Interactive console front-end rendering session state with rich."""

import logging
from pathlib import Path
from typing import Optional

from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.events import Benchmark, TranscribeFile, TranscribeSample, Trigger
from ..services.event_log import LOG_TOPIC
from ..services.orchestrator import STATE_TOPIC, TranscriptionOrchestrator

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands:\n"
    "  [bold blue]b[/bold blue]        - Benchmark\n"
    "  [bold blue]s[/bold blue]        - Transcribe sample\n"
    "  [bold blue]f PATH[/bold blue]   - Transcribe a file\n"
    "  [bold green]r[/bold green]        - Start / stop recording\n"
    "  [bold red]q[/bold red]        - Quit"
)


class ConsoleScreen:
    """Renders ``ready``, ``recording`` and the event log; issues triggers.

    Log lines and state changes arrive through pubsub, so output appears
    while a run is still in progress on the worker thread.
    """

    def __init__(self, orchestrator: TranscriptionOrchestrator, console: Optional[Console] = None):
        self.orchestrator = orchestrator
        self.console = console or Console()
        self.running = False
        self.ready = False
        self.busy = False
        self.recording = False

        pub.subscribe(self._on_log_line, LOG_TOPIC)
        pub.subscribe(self._on_state, STATE_TOPIC)

    def _on_log_line(self, line: str) -> None:
        self.console.print(Text(line, style="white"))

    def _on_state(self, ready: bool, busy: bool, recording: bool) -> None:
        changed = (ready, busy, recording) != (self.ready, self.busy, self.recording)
        self.ready, self.busy, self.recording = ready, busy, recording
        if changed:
            self.console.print(self._status_text())

    def _status_text(self) -> Text:
        if self.recording:
            state = ("RECORDING", "bold red")
        elif self.busy:
            state = ("BUSY", "bold yellow")
        elif self.ready:
            state = ("READY", "bold green")
        else:
            state = ("NOT READY", "bold red")
        return Text.assemble("Status: ", state)

    def show_status(self) -> None:
        """Print a status panel with the session's observable fields."""
        snapshot = self.orchestrator.snapshot()
        table = Table(show_header=False, box=None)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Ready", "yes" if snapshot.ready else "no")
        table.add_row("Recording", "yes" if snapshot.recording else "no")
        table.add_row("Model", self.orchestrator.gate.model_ref or "-")
        table.add_row("Output", str(self.orchestrator.file_manager.output_dir))
        stats = self.orchestrator.file_manager.get_storage_stats()
        table.add_row("Documents", f"{stats['documents']} ({stats['total_size_mb']} MB)")
        table.add_row("Kept temp files", str(stats["temp_files"]))
        self.console.print(Panel(table, title="Scribe2Me", border_style="blue"))

    def handle_command(self, command: str) -> bool:
        """Dispatch one command line.

        Returns:
            False when the user asked to quit
        """
        command = command.strip()
        if not command:
            return True

        name, _, argument = command.partition(" ")
        name = name.lower()

        if name == "q":
            return False
        if name == "r":
            self.orchestrator.toggle_record()
        elif name == "b":
            self._submit(Benchmark())
        elif name == "s":
            self._submit(TranscribeSample())
        elif name == "f":
            if not argument.strip():
                self.console.print("Usage: f PATH", style="yellow")
            else:
                self._submit(TranscribeFile(Path(argument.strip()).expanduser()))
        elif name in ("h", "?"):
            self.console.print(HELP_TEXT)
        else:
            self.console.print(f"Unknown command: {command}", style="red")
        return True

    def _submit(self, trigger: Trigger) -> None:
        outcome = self.orchestrator.submit(trigger)
        if not outcome.accepted:
            # Buttons are disabled while not ready; nothing reaches the event log
            self.console.print(f"Not available ({outcome.reason.value})", style="yellow")

    def run(self) -> None:
        """Run the interactive command loop until ``q`` or Ctrl+C."""
        self.running = True
        self.show_status()
        self.console.print(HELP_TEXT)

        try:
            while self.running:
                command = self.console.input("> ")
                self.running = self.handle_command(command)
        except (KeyboardInterrupt, EOFError):
            self.running = False
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        """Unsubscribe and shut the orchestrator down."""
        try:
            pub.unsubscribe(self._on_log_line, LOG_TOPIC)
            pub.unsubscribe(self._on_state, STATE_TOPIC)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        self.orchestrator.shutdown()
        self.console.print("\nScribe2Me session ended", style="bold blue")
        logger.info("ConsoleScreen cleanup completed")
