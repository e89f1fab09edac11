from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path
from typing import List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

for entry in (BASE_DIR, SRC_DIR):
    if str(entry) not in sys.path:
        sys.path.append(str(entry))

TINY_ENV_VARS = ("TINY_TRACE_SCAN", "TINY_ECHO_SOURCE", "TINY_MAX_DEPTH", "TINY_INT_MAX")


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Parametrized ids are generated from tables; refuse to run colliding ones."""
    del session, config

    counts = Counter(item.nodeid for item in items)
    duplicates = sorted(nodeid for nodeid, n in counts.items() if n > 1)
    if duplicates:
        lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
        raise pytest.UsageError(f"Duplicate pytest nodeids detected during collection:\n{lines}")


@pytest.fixture(autouse=True)
def isolate_tiny_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep parser settings from the caller's shell out of the tests."""
    for name in TINY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
