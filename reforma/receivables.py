"""Accounts receivable: outstanding WO balances and their aging"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from config import OUTSTANDING_THRESHOLD, AGING_CURRENT_MAX_DAYS, AGING_WARNING_MAX_DAYS
from .dates import parse_date
from .models import CashierTransaction, Job


@dataclass
class ReceivableItem:
    job_id: str
    wo_number: str
    customer_name: str
    total_bill: float
    paid_amount: float
    remaining: float
    age_days: int
    is_closed: bool

    @property
    def payment_status(self) -> str:
        if self.paid_amount >= self.total_bill and self.total_bill > 0:
            return 'PAID'
        if self.paid_amount > 0:
            return 'PARTIAL'
        return 'UNPAID'


@dataclass
class AgingBucket:
    count: int = 0
    total: float = 0.0
    items: List[ReceivableItem] = field(default_factory=list)

    def add(self, item: ReceivableItem) -> None:
        self.count += 1
        self.total += item.remaining
        self.items.append(item)


@dataclass
class AgingProfile:
    """Outstanding balances split by age: current (<=7d), warning (8-14d), critical (>14d)"""
    current: AgingBucket = field(default_factory=AgingBucket)
    warning: AgingBucket = field(default_factory=AgingBucket)
    critical: AgingBucket = field(default_factory=AgingBucket)

    @property
    def total(self) -> float:
        return self.current.total + self.warning.total + self.critical.total

    @property
    def count(self) -> int:
        return self.current.count + self.warning.count + self.critical.count

    def bucket_for(self, age_days: int) -> AgingBucket:
        if age_days <= AGING_CURRENT_MAX_DAYS:
            return self.current
        if age_days <= AGING_WARNING_MAX_DAYS:
            return self.warning
        return self.critical


def paid_by_job(transactions: Iterable[CashierTransaction]) -> Dict[str, float]:
    """Sum of IN transactions per referenced job id"""
    paid: Dict[str, float] = defaultdict(float)
    for tx in transactions:
        if tx.type == 'IN' and tx.ref_job_id:
            paid[tx.ref_job_id] += tx.amount
    return paid


def _receivable(job: Job, paid: Dict[str, float], now: datetime) -> ReceivableItem:
    total_bill = job.estimate_data.grand_total
    paid_amount = paid.get(job.id, 0.0)
    # Aging runs from job creation, not from invoice date
    age_days = (now - parse_date(job.created_at, now)).days
    return ReceivableItem(
        job_id=job.id,
        wo_number=job.wo_number,
        customer_name=job.customer_name,
        total_bill=total_bill,
        paid_amount=paid_amount,
        remaining=total_bill - paid_amount,
        age_days=age_days,
        is_closed=job.is_closed,
    )


def receivables(jobs: Iterable[Job], transactions: Iterable[CashierTransaction],
                now: Optional[datetime] = None) -> List[ReceivableItem]:
    """Every WO (open or closed) that still has more than the threshold to collect"""
    now = now or datetime.now()
    paid = paid_by_job(transactions)
    items = [_receivable(job, paid, now) for job in jobs if job.wo_number and not job.is_deleted]
    return [item for item in items if item.remaining > OUTSTANDING_THRESHOLD]


def ar_aging(jobs: Iterable[Job], transactions: Iterable[CashierTransaction],
             now: Optional[datetime] = None) -> AgingProfile:
    """Aging of open WOs only; each outstanding WO lands in exactly one bucket"""
    now = now or datetime.now()
    open_jobs = [job for job in jobs if not job.is_closed]
    profile = AgingProfile()
    for item in receivables(open_jobs, transactions, now):
        profile.bucket_for(item.age_days).add(item)
    return profile
