from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def peers_payload() -> bytes:
    return (FIXTURES / "peers_anon.json").read_bytes()
