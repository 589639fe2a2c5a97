"""File management for samples, temporary audio and saved transcripts."""

import os
import time
import shutil
import logging
import tempfile
from pathlib import Path
from typing import Dict, Any, Optional, List

from ..exceptions import PersistError

logger = logging.getLogger(__name__)


class FileManager:
    """Manages the data directory layout and the user-visible output directory.

    Layout under ``data_dir``: ``samples/`` (bundled samples), ``tmp/``
    (capture and transcoding files owned by the orchestrator), ``logs/``.
    Transcripts go to ``output_dir`` (default ``<data_dir>/transcripts``).
    """

    def __init__(self, data_dir: str = "./data", output_dir: Optional[str] = None):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
            output_dir: Durable, user-visible directory for transcripts
        """
        self.data_dir = Path(data_dir)
        self.samples_dir = self.data_dir / "samples"
        self.tmp_dir = self.data_dir / "tmp"
        self.logs_dir = self.data_dir / "logs"
        self.output_dir = Path(output_dir) if output_dir else self.data_dir / "transcripts"

        # Create directory structure
        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.samples_dir, self.tmp_dir, self.logs_dir, self.output_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def install_samples(self, source_dir: Optional[str]) -> int:
        """Copy bundled samples into the data directory without overwriting.

        Args:
            source_dir: Directory holding the bundled sample files

        Returns:
            Number of files copied
        """
        if not source_dir:
            return 0
        source = Path(source_dir)
        if not source.is_dir():
            logger.warning(f"Bundled samples directory not found: {source}")
            return 0

        copied = 0
        for path in sorted(source.iterdir()):
            if not path.is_file():
                continue
            dest_file = self.samples_dir / path.name
            if dest_file.exists():
                continue
            try:
                shutil.copyfile(path, dest_file)
                copied += 1
            except OSError as e:
                logger.error(f"Failed to copy sample {path.name}: {e}")

        logger.info(f"Installed {copied} bundled samples into {self.samples_dir}")
        return copied

    def list_samples(self) -> List[Path]:
        """List sample files sorted by name."""
        return sorted(p for p in self.samples_dir.iterdir() if p.is_file())

    def create_temp_file(self, prefix: str, suffix: str) -> Path:
        """Create an empty, uniquely named file under ``tmp/``."""
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=self.tmp_dir)
        os.close(fd)
        return Path(name)

    def discard(self, path: Optional[Path]) -> None:
        """Delete an orchestrator-owned temporary file if it still exists."""
        if path is None:
            return
        try:
            Path(path).unlink(missing_ok=True)
            logger.debug(f"Discarded temporary file: {path}")
        except OSError as e:
            logger.warning(f"Could not delete temporary file {path}: {e}")

    def document_name(self, prefix: str, extension: str) -> str:
        """Build ``<prefix>_<epochMillis>.<ext>``, unique within the output directory."""
        millis = int(time.time() * 1000)
        name = f"{prefix}_{millis}.{extension}"
        while (self.output_dir / name).exists():
            millis += 1
            name = f"{prefix}_{millis}.{extension}"
        return name

    def write_document(self, name: str, content: str) -> Path:
        """Write a document into the output directory.

        Raises:
            PersistError: If the file cannot be written (usually permissions)
        """
        path = self.output_dir / name
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Error saving document {path}: {e}")
            raise PersistError(e) from e

        logger.info(f"Document saved: {path} ({len(content)} chars)")
        return path

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics."""
        documents = [p for p in self.output_dir.iterdir() if p.is_file()]
        temp_files = [p for p in self.tmp_dir.iterdir() if p.is_file()]
        total_size = sum(p.stat().st_size for p in documents + temp_files)

        return {
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "documents": len(documents),
            "subtitle_documents": sum(1 for p in documents if p.suffix == ".srt"),
            "temp_files": len(temp_files),
            "samples": len(self.list_samples()),
            "output_directory": str(self.output_dir),
        }
