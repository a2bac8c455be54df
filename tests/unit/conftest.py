from __future__ import annotations

import pytest

from toll_checker.providers.models import ProviderAdapter
from toll_checker.testing.fakes import MemorySink, demo_adapter


@pytest.fixture()
def adapter() -> ProviderAdapter:
    return demo_adapter()


@pytest.fixture()
def sink() -> MemorySink:
    return MemorySink()
