"""Unit tests for FileManager class."""

import time
import pytest
from pathlib import Path
from unittest.mock import patch

from scribe2me.exceptions import PersistError
from scribe2me.storage.file_manager import FileManager


@pytest.mark.unit
class TestFileManager:
    """Test cases for FileManager class."""

    def test_initialization(self, temp_data_dir):
        """Test FileManager initialization."""
        fm = FileManager(temp_data_dir)

        assert fm.data_dir == Path(temp_data_dir)
        assert fm.samples_dir == Path(temp_data_dir) / "samples"
        assert fm.tmp_dir == Path(temp_data_dir) / "tmp"
        assert fm.logs_dir == Path(temp_data_dir) / "logs"
        assert fm.output_dir == Path(temp_data_dir) / "transcripts"

        for directory in (fm.data_dir, fm.samples_dir, fm.tmp_dir, fm.logs_dir, fm.output_dir):
            assert directory.is_dir()

    def test_custom_output_directory(self, temp_data_dir):
        output = Path(temp_data_dir) / "Downloads"
        fm = FileManager(Path(temp_data_dir) / "data", str(output))

        assert fm.output_dir == output
        assert output.is_dir()

    def test_install_samples_does_not_overwrite(self, temp_data_dir, bundled_samples_dir):
        fm = FileManager(Path(temp_data_dir) / "data")
        (fm.samples_dir / "a_first.wav").write_bytes(b"user edited")

        copied = fm.install_samples(str(bundled_samples_dir))

        assert copied == 1
        assert (fm.samples_dir / "a_first.wav").read_bytes() == b"user edited"
        assert (fm.samples_dir / "b_second.wav").exists()

    def test_install_samples_missing_source(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        assert fm.install_samples(None) == 0
        assert fm.install_samples(str(Path(temp_data_dir) / "nope")) == 0

    def test_list_samples_sorted(self, temp_data_dir, bundled_samples_dir):
        fm = FileManager(Path(temp_data_dir) / "data")
        fm.install_samples(str(bundled_samples_dir))

        assert [p.name for p in fm.list_samples()] == ["a_first.wav", "b_second.wav"]

    def test_create_temp_file_and_discard(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        path = fm.create_temp_file("capture", ".wav")
        assert path.parent == fm.tmp_dir
        assert path.name.startswith("capture")
        assert path.exists()

        fm.discard(path)
        assert not path.exists()

        # Discarding twice or discarding nothing is harmless
        fm.discard(path)
        fm.discard(None)

    def test_document_name(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        with patch("scribe2me.storage.file_manager.time.time", return_value=1700000000.123):
            name = fm.document_name("whisper", "srt")

        assert name == "whisper_1700000000123.srt"

    def test_document_name_is_unique(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        with patch("scribe2me.storage.file_manager.time.time", return_value=1700000000.0):
            first = fm.document_name("whisper", "srt")
            fm.write_document(first, "1\n")
            second = fm.document_name("whisper", "srt")

        assert first == "whisper_1700000000000.srt"
        assert second == "whisper_1700000000001.srt"

    def test_write_document(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        path = fm.write_document("whisper_1.txt", "hello world")

        assert path == fm.output_dir / "whisper_1.txt"
        assert path.read_text(encoding="utf-8") == "hello world"

    def test_write_document_failure_raises_persist_error(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        with patch("builtins.open", side_effect=PermissionError("read-only")):
            with pytest.raises(PersistError) as exc_info:
                fm.write_document("whisper_1.srt", "1\n")

        assert isinstance(exc_info.value.cause, PermissionError)

    def test_get_storage_stats(self, temp_data_dir):
        fm = FileManager(temp_data_dir)
        fm.write_document("whisper_1.srt", "1\n00:00:00,000 --> 00:00:01,000\nhi\n")
        fm.write_document("whisper_2.txt", "hi")
        fm.create_temp_file("capture", ".wav")

        stats = fm.get_storage_stats()

        assert stats["documents"] == 2
        assert stats["subtitle_documents"] == 1
        assert stats["temp_files"] == 1
        assert stats["samples"] == 0
        assert stats["total_size_bytes"] > 0
