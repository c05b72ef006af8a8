"""
Tests for the command-line interface.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from conceptgraph.config import get_settings

from .main import app

runner = CliRunner()


@pytest.fixture
def content(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Small content tree with isolated cache and manual edge paths."""
    root = tmp_path / "content"
    root.mkdir()
    units = {
        "sets.json": {"metadata": {"id": "sets", "title": "Sets"}},
        "functions.json": {
            "metadata": {"id": "functions", "title": "Functions", "prerequisites": ["sets"]}
        },
        "limits.json": {
            "metadata": {"id": "limits", "title": "Limits", "prerequisites": ["functions"]}
        },
        "topology.json": {"metadata": {"id": "topology", "title": "Topology"}},
    }
    for name, data in units.items():
        (root / name).write_text(json.dumps(data), encoding="utf-8")

    monkeypatch.setenv("CONCEPTGRAPH_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("CONCEPTGRAPH_MANUAL_EDGES_PATH", str(root / "manual_edges.json"))
    get_settings.cache_clear()
    yield root
    get_settings.cache_clear()


def test_build_then_cached(content: Path):
    """Test building twice reuses the cache the second time."""
    first = runner.invoke(app, ["build", "--content", str(content)])
    assert first.exit_code == 0
    assert "Build Summary" in first.output

    second = runner.invoke(app, ["build", "--content", str(content)])
    assert second.exit_code == 0
    assert "yes" in second.output


def test_prerequisites(content: Path):
    """Test the prerequisite closure command."""
    result = runner.invoke(app, ["prerequisites", "limits", "--content", str(content)])

    assert result.exit_code == 0
    assert "functions" in result.output
    assert "sets" in result.output


def test_path_not_found(content: Path):
    """Test a disconnected pair exits non-zero."""
    result = runner.invoke(app, ["path", "sets", "topology", "--content", str(content)])

    assert result.exit_code == 1
    assert "No path" in result.output


def test_unknown_node(content: Path):
    """Test an unknown node id is reported as an error."""
    result = runner.invoke(app, ["neighborhood", "ghost", "--content", str(content)])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_malformed_manual_edges(content: Path):
    """Test a schema defect aborts the build."""
    (content / "manual_edges.json").write_text('{"from": "sets"}', encoding="utf-8")

    result = runner.invoke(app, ["build", "--content", str(content)])

    assert result.exit_code == 1


def test_version():
    """Test version output."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "ConceptGraph v" in result.output
