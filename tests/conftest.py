from __future__ import annotations

import socket
import sys
from pathlib import Path

import pytest

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

ROOT = Path(__file__).resolve().parents[1]
FAKE_COMPILER = ROOT / "tests" / "fixtures" / "fake_mdx_compiler.py"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture
def fake_compiler_command() -> tuple[str, ...]:
    return (sys.executable, str(FAKE_COMPILER))


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    (root / "docs" / "guides").mkdir(parents=True)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "docs" / "intro.mdx").write_text("# Intro\n\nHello {props.name}\n", encoding="utf-8")
    (root / "docs" / "guides" / "setup.md").write_text("# Setup\n\nRun it.\n", encoding="utf-8")
    (root / "docs" / "notes.txt").write_text("not markdown\n", encoding="utf-8")
    (root / "node_modules" / "pkg" / "README.md").write_text("# vendored\n", encoding="utf-8")
    return root
