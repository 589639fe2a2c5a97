"""Main application entry point for Scribe2Me."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from . import __version__
from .config import Scribe2MeConfig
from .models.events import Benchmark, TranscribeFile, TranscribeSample, Trigger
from .models.transcription import OutputMode
from .services.orchestrator import TranscriptionOrchestrator

logger = logging.getLogger(__name__)


def setup_logging(config: Scribe2MeConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/scribe2me.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - warnings only, the event log is the user-facing channel
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Scribe2Me starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def run_once(orchestrator: TranscriptionOrchestrator,
             trigger: Optional[Trigger] = None,
             record_seconds: Optional[float] = None) -> int:
    """Run one action to completion.

    Returns:
        Process exit status
    """
    if record_seconds is not None:
        if not orchestrator.start_capture():
            return 1
        time.sleep(record_seconds)
        outcome = orchestrator.stop_capture()
    else:
        outcome = orchestrator.submit(trigger)

    if outcome is None or not outcome.accepted:
        reason = outcome.reason.value if outcome is not None else "not recording"
        logger.error(f"Action rejected: {reason}")
        return 1

    report = outcome.wait()
    if isinstance(trigger, Benchmark):
        return 0
    if report is None or report.persist_error:
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scribe2Me - Offline speech-to-subtitles transcription",
        epilog="Interactive commands: b=Benchmark, s=Sample, f PATH=File, r=Record toggle, q=Quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for scribe2me.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config)"
    )

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "--file",
        type=str,
        help="Transcribe an audio or video file in any format ffmpeg understands, then exit"
    )
    actions.add_argument(
        "--sample",
        action="store_true",
        help="Transcribe the first bundled sample, then exit"
    )
    actions.add_argument(
        "--benchmark",
        action="store_true",
        help="Run the engine micro benchmarks, then exit"
    )
    actions.add_argument(
        "--record",
        type=float,
        metavar="SECONDS",
        help="Record from the microphone for SECONDS, transcribe, then exit"
    )

    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in OutputMode],
        help="Output document type (overrides output.mode)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Scribe2Me v{__version__}"
    )
    return parser


def main(argv=None) -> None:
    """Main entry point for Scribe2Me."""
    args = build_parser().parse_args(argv)
    console = Console()

    try:
        config = Scribe2MeConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"Configuration error: {e}", style="bold red")
        sys.exit(2)

    if args.mode:
        config.set('output.mode', args.mode)
    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

    orchestrator = TranscriptionOrchestrator(config)
    one_shot = args.file or args.sample or args.benchmark or args.record is not None

    if not one_shot:
        from .ui.console_screen import ConsoleScreen
        screen = ConsoleScreen(orchestrator, console)
        orchestrator.initialize()
        screen.run()
        return

    status = 1
    try:
        if orchestrator.initialize():
            if args.file:
                status = run_once(orchestrator, TranscribeFile(Path(args.file)))
            elif args.sample:
                status = run_once(orchestrator, TranscribeSample())
            elif args.benchmark:
                status = run_once(orchestrator, Benchmark())
            else:
                status = run_once(orchestrator, record_seconds=args.record)
    except KeyboardInterrupt:
        console.print("\nInterrupted", style="yellow")
    except Exception as e:
        console.print(f"Error: {e}", style="bold red")
        logger.error(f"Application error: {e}", exc_info=True)
    finally:
        orchestrator.shutdown()
        console.print(Text(orchestrator.event_log.text.rstrip("\n")))

    sys.exit(status)


if __name__ == "__main__":
    main()
