"""Tests for the varkeeper CLI (read-only commands over a snapshot file)."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from varkeeper.cli import main


# ── Helpers ──────────────────────────────────────────────────────────────────


def _pkg(path, creator, name, version, size=100, deps=(), enabled=True):
    return {
        "filePath": path,
        "size": size,
        "isEnabled": enabled,
        "meta": {
            "creator": creator,
            "packageName": name,
            "version": version,
            "dependencies": {d: {} for d in deps},
        },
    }


@pytest.fixture(autouse=True)
def _quiet_logs(monkeypatch):
    monkeypatch.setenv("VARKEEPER_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("VARKEEPER_SYSTEM_PATTERNS", raising=False)


@pytest.fixture
def snapshot_file(tmp_path):
    payload = {
        "packages": [
            _pkg("/lib/Alice.Pack.1.var", "Alice", "Pack", "1"),
            _pkg("/lib/sub/Alice.Pack.1.var", "Alice", "Pack", "1"),
            _pkg("/lib/Alice.Pack.2.var.disabled", "Alice", "Pack", "2", enabled=False),
            _pkg("/lib/Bob.Scene.1.var", "Bob", "Scene", "1", deps=["Alice.Lib.2", "Alice.Pack.1"]),
            _pkg("/lib/Alice.Lib.1.var", "Alice", "Lib", "1"),
        ]
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(payload))
    return str(path)


class TestClassify:
    def test_summary(self, snapshot_file):
        result = CliRunner().invoke(main, ["classify", snapshot_file])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["summary"] == {
            "total": 5,
            "obsolete": 2,
            "duplicates": 2,
            "missing_dependencies": 1,
        }
        scene = next(p for p in data["packages"] if p["packageName"] == "Scene")
        assert scene["missingDeps"] == ["Alice.Lib.2"]

    def test_problems_only(self, snapshot_file):
        result = CliRunner().invoke(main, ["classify", "--problems-only", snapshot_file])
        data = json.loads(result.output)
        assert "/lib/Alice.Lib.1.var" not in [p["filePath"] for p in data["packages"]]

    def test_invalid_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        result = CliRunner().invoke(main, ["classify", str(bad)])
        assert result.exit_code != 0
        assert "not valid JSON" in result.output


class TestPlan:
    def test_whole_library(self, snapshot_file):
        result = CliRunner().invoke(main, ["plan", snapshot_file, "--library", "/lib"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["merge_plan"][0]["keep"] == "/lib/Alice.Pack.1.var"
        assert data["merge_plan"][0]["delete"] == ["/lib/sub/Alice.Pack.1.var"]
        assert [g["id"] for g in data["resolve_groups"]] == ["Alice.Pack"]

    def test_package_scope(self, snapshot_file):
        result = CliRunner().invoke(
            main, ["plan", snapshot_file, "-l", "/lib", "--package", "/lib/Alice.Lib.1.var"]
        )
        data = json.loads(result.output)
        assert data["is_empty"] is True

    def test_unknown_package(self, snapshot_file):
        result = CliRunner().invoke(main, ["plan", snapshot_file, "-l", "/lib", "--package", "/lib/nope.var"])
        assert result.exit_code != 0
        assert "not found" in result.output


class TestImpact:
    def test_cascade(self, snapshot_file):
        result = CliRunner().invoke(main, ["impact", snapshot_file, "/lib/Bob.Scene.1.var"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["targets"] == ["/lib/Bob.Scene.1.var"]
        assert "/lib/Alice.Lib.1.var" in data["forced_cascade"]
        assert set(data["safe_cascade"]) <= set(data["forced_cascade"])


class TestLocate:
    def test_mismatch(self, snapshot_file):
        result = CliRunner().invoke(main, ["locate", snapshot_file, "Alice.Lib.2"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["status"] == "mismatch"
        assert data["file_path"] == "/lib/Alice.Lib.1.var"

    def test_missing_exits_nonzero(self, snapshot_file):
        result = CliRunner().invoke(main, ["locate", snapshot_file, "Nobody.Gone.1"])
        assert result.exit_code == 1

    def test_system_pattern_option(self, snapshot_file):
        result = CliRunner().invoke(main, ["--system-pattern", "nobody.", "locate", snapshot_file, "Nobody.Gone.1"])
        assert json.loads(result.output)["status"] == "system"
