"""Tests for the command-line entry point."""

import yaml

import main
from rollover.config import RotationConfig


class TestSweepOnce:
    def test_trims_archives(self, tmp_path):
        for i in range(1, 6):
            (tmp_path / f"app.log.{i}").write_text("x")
        cfg = RotationConfig(directory=str(tmp_path), file_prefix="app.log",
                             size_limit_bytes=100, file_count=2)

        assert main.sweep_once(cfg) == 0
        assert sorted(p.name for p in tmp_path.iterdir()) == ["app.log.4", "app.log.5"]

    def test_none_mode_is_noop(self, tmp_path):
        (tmp_path / "app.log.1").write_text("x")
        cfg = RotationConfig(directory=str(tmp_path), file_prefix="app.log")

        assert main.sweep_once(cfg) == 0
        assert (tmp_path / "app.log.1").exists()

    def test_cli_reads_yaml(self, tmp_path, monkeypatch):
        for name in ("LOG_DIR", "LOG_FILE_PREFIX", "LOG_FILE_COUNT", "LOG_LIMIT_BYTES",
                     "LOG_LIMIT_MB", "LOG_DAILY"):
            monkeypatch.delenv(name, raising=False)
        for day in ("2024-01-01", "2024-01-02", "2024-01-03"):
            (tmp_path / f"app.log.{day}").write_text("x")
        config_path = tmp_path / "config.yml"
        config_path.write_text(yaml.dump({"rotation": {
            "directory": str(tmp_path), "file_prefix": "app.log",
            "daily": True, "file_count": 1,
        }}))

        assert main.main(["--config", str(config_path), "--sweep-once"]) == 0
        assert not (tmp_path / "app.log.2024-01-01").exists()
        assert (tmp_path / "app.log.2024-01-03").exists()


    def test_missing_directory_fails_cleanly(self, tmp_path, monkeypatch):
        for name in ("LOG_FILE_PREFIX", "LOG_FILE_COUNT", "LOG_LIMIT_MB", "LOG_DAILY"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("LOG_DIR", str(tmp_path / "gone"))
        monkeypatch.setenv("LOG_LIMIT_BYTES", "100")

        assert main.main(["--sweep-once"]) == 1
        assert not (tmp_path / "gone").exists()


class TestGenerateEntry:
    def test_entry_is_one_line_of_bytes(self):
        entry = main.generate_entry(7)
        assert isinstance(entry, bytes)
        assert entry.endswith(b"\n")
        assert entry.count(b"\n") == 1
        assert b" seq=00000007 " in entry
