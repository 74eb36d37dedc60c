"""Recompute KPIs whenever the ledger store pushes a new snapshot"""
from datetime import datetime
from typing import Callable, Dict, List, Optional

from loguru import logger

from config import ASSETS_COLLECTION, JOBS_COLLECTION, TRANSACTIONS_COLLECTION
from .analytics import KpiSnapshot, compute_kpis
from .ledger_store import LedgerStore, Record
from .models import Asset, CashierTransaction, Job, Settings


class LiveDashboard:
    """
    Keeps the latest KPI snapshot for one period.

    Subscribes to the jobs, transactions and assets collections and runs a
    full recompute on every push. The newest result replaces the previous
    one; there is no partial recompute.
    """

    def __init__(self, store: LedgerStore, settings: Settings, month: int, year: int,
                 on_update: Optional[Callable[[KpiSnapshot], None]] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.settings = settings
        self.month = month
        self.year = year
        self.on_update = on_update
        self.clock = clock or datetime.now
        self.snapshot: Optional[KpiSnapshot] = None

        self._jobs: List[Job] = []
        self._transactions: List[CashierTransaction] = []
        self._assets: List[Asset] = []
        self._ready = False
        self._unsubscribers = [
            store.subscribe(JOBS_COLLECTION, self._on_jobs),
            store.subscribe(TRANSACTIONS_COLLECTION, self._on_transactions),
            store.subscribe(ASSETS_COLLECTION, self._on_assets),
        ]
        self._ready = True
        self.refresh()

    def _on_jobs(self, docs: List[Record]):
        self._jobs = [Job.from_dict(d) for d in docs if d.get('id')]
        self.refresh()

    def _on_transactions(self, docs: List[Record]):
        self._transactions = [CashierTransaction.from_dict(d) for d in docs]
        self.refresh()

    def _on_assets(self, docs: List[Record]):
        self._assets = [Asset.from_dict(d) for d in docs]
        self.refresh()

    def set_period(self, month: int, year: int) -> KpiSnapshot:
        self.month, self.year = month, year
        return self.refresh()

    def refresh(self) -> Optional[KpiSnapshot]:
        # Initial pushes arrive one collection at a time; wait for all three
        if not self._ready:
            return None
        self.snapshot = compute_kpis(self._jobs, self._transactions, self._assets,
                                     self.settings, self.month, self.year, now=self.clock())
        logger.debug(f"KPIs recomputed for {self.month:02d}/{self.year}: "
                     f"realized GP {self.snapshot.realized_gp:,.0f}")
        if self.on_update:
            self.on_update(self.snapshot)
        return self.snapshot

    def counts(self) -> Dict[str, int]:
        return {
            JOBS_COLLECTION: len(self._jobs),
            TRANSACTIONS_COLLECTION: len(self._transactions),
            ASSETS_COLLECTION: len(self._assets),
        }

    def close(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
