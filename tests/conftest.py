"""
Test configuration: puts the repo root on sys.path and provides the
in-memory workbook fixtures shared by the operation tests.
"""

import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import outreach.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from outreach.cache import CacheManager  # noqa: E402
from outreach.ids import IdCodec  # noqa: E402
from outreach.operations import OperationContext  # noqa: E402
from outreach.service import OutreachService  # noqa: E402
from tests.fixtures.workbook import store_config  # noqa: E402


@pytest.fixture
def codec() -> IdCodec:
    return IdCodec(prefix="ME", width=4)


@pytest.fixture
def cache() -> CacheManager:
    return CacheManager(max_size=50, default_ttl=60)


@pytest.fixture
def make_ctx(codec, cache):
    """Build an OperationContext around an InMemorySheetStore."""

    def _make(store, batch_size: int = 100) -> OperationContext:
        return OperationContext(store=store, config=store_config(batch_size), codec=codec, cache=cache)

    return _make


@pytest.fixture
def make_service(codec, cache):
    def _make(store) -> OutreachService:
        return OutreachService(store, cfg=store_config(), codec=codec, cache=cache)

    return _make
