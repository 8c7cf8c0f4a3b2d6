"""
OutreachService: entry points used by the API and the CLI.

Structural operations are serialised in-process: a second one started
while another runs fails fast with OperationInProgressError. Read-only
scans share a cached snapshot under the "sheet_data" key.
"""

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from outreach import config
from outreach.cache import CacheManager, get_cache
from outreach.config import StoreConfig
from outreach.errors import OperationInProgressError
from outreach.ids import IdCodec
from outreach.observability import RequestContext
from outreach.operations import (
    AddResult,
    CompanyPayload,
    DuplicateGroup,
    GapRepairResult,
    GapScan,
    InsertResult,
    MergeResult,
    MergeStrategy,
    OperationContext,
    ReconcileResult,
    add_company,
    insert_company,
    merge_companies,
    reconcile,
    repair_gaps,
    scan_duplicates,
    scan_gaps,
)
from outreach.sheets.base import RowStore
from outreach.snapshot import Snapshot, read_snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OutreachService:
    def __init__(
        self,
        store: RowStore,
        cfg: StoreConfig | None = None,
        codec: IdCodec | None = None,
        cache: CacheManager | None = None,
    ):
        self.store = store
        self.config = cfg or StoreConfig.from_env()
        self.codec = codec or IdCodec(prefix=self.config.id_prefix, width=self.config.id_width)
        self.cache = cache if cache is not None else get_cache()
        self._lock = threading.Lock()

    @property
    def context(self) -> OperationContext:
        return OperationContext(store=self.store, config=self.config, codec=self.codec, cache=self.cache)

    def _structural(self, operation: str, func: Callable[[OperationContext], T]) -> T:
        if not self._lock.acquire(blocking=False):
            raise OperationInProgressError(
                f"Another structural operation is running; retry {operation} shortly",
                details={"operation": operation},
            )
        try:
            with RequestContext(operation=operation):
                return func(self.context)
        finally:
            self._lock.release()

    def load_snapshot(self) -> Snapshot:
        """Snapshot for read-only scans; cached for CACHE_TTL_SECONDS."""
        return self.cache.get_or_load(
            config.SNAPSHOT_CACHE_KEY,
            lambda: read_snapshot(self.store, self.config, self.codec),
        )

    # ----------------------------------------------------------------
    # Structural operations
    # ----------------------------------------------------------------

    def insert_company(self, target_id: str, payload: CompanyPayload) -> InsertResult:
        return self._structural("insert_company", lambda ctx: insert_company(ctx, target_id, payload))

    def add_company(self, payload: CompanyPayload) -> AddResult:
        return self._structural("add_company", lambda ctx: add_company(ctx, payload))

    def merge_companies(
        self,
        survivor_id: str,
        victim_id: str,
        strategy: MergeStrategy | None = None,
        retain_keys: list[str] | None = None,
    ) -> MergeResult:
        return self._structural(
            "merge_companies",
            lambda ctx: merge_companies(ctx, survivor_id, victim_id, strategy, retain_keys),
        )

    def repair_gaps(self) -> GapRepairResult:
        return self._structural("repair_gaps", repair_gaps)

    def reconcile(self, preview: bool = False) -> ReconcileResult:
        if preview:
            with RequestContext(operation="reconcile_preview"):
                return reconcile(self.context, preview=True)
        return self._structural("reconcile", lambda ctx: reconcile(ctx, preview=False))

    # ----------------------------------------------------------------
    # Read-only scans
    # ----------------------------------------------------------------

    def scan_gaps(self) -> GapScan:
        with RequestContext(operation="scan_gaps"):
            return scan_gaps(self.load_snapshot().registry, self.codec)

    def scan_duplicates(self) -> list[DuplicateGroup]:
        with RequestContext(operation="scan_duplicates"):
            return scan_duplicates(self.load_snapshot())

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Cache cleared")


_service: OutreachService | None = None


def get_service() -> OutreachService:
    """Process-wide service backed by the Google Sheets client."""
    global _service
    if _service is None:
        from outreach.sheets import SheetsClient

        _service = OutreachService(SheetsClient())
    return _service
