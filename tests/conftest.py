import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from prefstore import InMemoryBackend, PrefsStore  # noqa: E402


@pytest.fixture()
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture()
def store(backend: InMemoryBackend) -> PrefsStore:
    return PrefsStore("P1_", backend)
