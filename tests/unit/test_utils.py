"""Unit tests for file helpers and the cycle timer."""

from pathlib import Path

import pytest

from yttrium.errors import ResourceNotFound
from yttrium.utils.io import ensure_dir, load_yaml, save_yaml
from yttrium.utils.time import Timer


class TestYamlHelpers:
    """Tests for YAML loading and saving."""

    def test_round_trip_keeps_key_order(self, tmp_path: Path) -> None:
        """Saved frame indexes reload with their original key order."""
        path = tmp_path / "nested" / "frames.yaml"
        data = {"sensors": 1, "frames": [{"timestamp": 0.5, "depth": ["0.png"]}]}

        save_yaml(data, path)

        assert list(load_yaml(path)) == ["sensors", "frames"]
        assert load_yaml(path) == data

    def test_empty_document(self, tmp_path: Path) -> None:
        """An empty file loads as an empty mapping."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path) == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        """Missing files raise ResourceNotFound, which is a FileNotFoundError."""
        with pytest.raises(ResourceNotFound):
            load_yaml(tmp_path / "missing.yaml")
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path)

    def test_ensure_dir(self, tmp_path: Path) -> None:
        """Directories are created with their parents."""
        path = ensure_dir(tmp_path / "a" / "b")
        assert path.is_dir()
        assert ensure_dir(path) == path


class TestTimer:
    """Tests for Timer."""

    def test_elapsed_frozen_after_exit(self) -> None:
        """Elapsed time stops advancing when the block exits."""
        with Timer() as timer:
            assert timer.running

        assert not timer.running
        first = timer.elapsed_ms
        assert first >= 0.0
        assert timer.elapsed_ms == first
        assert timer.elapsed_s == pytest.approx(first / 1000.0)
