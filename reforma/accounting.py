"""Cash-basis profit & loss and the accrual job profit summary"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from .dates import in_period, parse_date, period_end, to_datetime
from .models import Asset, CashierTransaction, Job

COGS_VENDOR = 'cogs_vendor'
PAYROLL = 'payroll'
TAX = 'tax'
ASSET_PURCHASE = 'asset_purchase'
OPERATIONAL = 'operational'

# IN categories that only move money between the workshop's own tills
INTERNAL_TRANSFER_KEYWORDS = ('kas kecil',)

Predicate = Callable[[CashierTransaction], bool]


def _text(tx: CashierTransaction) -> str:
    return f"{tx.category} {tx.description}".lower()


def mentions(*keywords: str) -> Predicate:
    """Case-insensitive substring match over category and description"""
    def predicate(tx: CashierTransaction) -> bool:
        text = _text(tx)
        return any(keyword in text for keyword in keywords)
    return predicate


def _references_purchase_order(tx: CashierTransaction) -> bool:
    return bool(tx.ref_po_id)


def _vendor_payment(tx: CashierTransaction) -> bool:
    return _references_purchase_order(tx) or mentions(
        'vendor', 'supplier', 'sparepart', 'bahan', 'material', 'sublet', 'jasa luar')(tx)


def _always(tx: CashierTransaction) -> bool:
    return True


# Evaluated top to bottom, first match wins
CLASSIFICATION_RULES: List[Tuple[Predicate, str]] = [
    (mentions('pajak', 'ppn', 'pph', 'tax'), TAX),
    (mentions('gaji', 'upah', 'payroll', 'salary', 'bonus', 'insentif'), PAYROLL),
    (mentions('aset', 'asset', 'investasi', 'peralatan'), ASSET_PURCHASE),
    (_vendor_payment, COGS_VENDOR),
    (_always, OPERATIONAL),
]


def classify_transaction(tx: CashierTransaction,
                         rules: List[Tuple[Predicate, str]] = CLASSIFICATION_RULES) -> str:
    for predicate, category in rules:
        if predicate(tx):
            return category
    return OPERATIONAL


def _months_between(start: datetime, end: datetime) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def depreciation_for_period(assets: Iterable[Asset], month: int, year: int) -> float:
    """
    Monthly depreciation of assets active at the end of the period.

    Assets bought after the period, or whose useful life ran out before it,
    contribute nothing. Assets without a parseable purchase date count.
    """
    end = period_end(month, year)
    total = 0.0
    for asset in assets:
        if not asset.is_active:
            continue
        purchased = to_datetime(asset.purchase_date)
        if purchased is not None:
            if purchased > end:
                continue
            life_months = int(asset.useful_life_years * 12)
            if life_months and _months_between(purchased, end) >= life_months:
                continue
        total += asset.monthly_depreciation
    return total


@dataclass
class CashPnL:
    revenue: float = 0.0
    cogs_vendor: float = 0.0
    payroll: float = 0.0
    operational: float = 0.0
    tax: float = 0.0
    asset_purchase: float = 0.0
    depreciation: float = 0.0
    total_cash_in: float = 0.0
    total_cash_out: float = 0.0

    @property
    def gross_profit(self) -> float:
        return self.revenue - self.cogs_vendor

    @property
    def net_profit(self) -> float:
        # Asset purchases excluded, depreciation included
        return self.gross_profit - (self.payroll + self.operational + self.tax + self.depreciation)

    @property
    def net_cash_flow(self) -> float:
        return self.total_cash_in - self.total_cash_out


def cash_profit_and_loss(transactions: Iterable[CashierTransaction], assets: Iterable[Asset],
                         month: int, year: int, now: Optional[datetime] = None) -> CashPnL:
    """Cash-basis P&L for one month built from cashier transactions"""
    now = now or datetime.now()
    pnl = CashPnL()
    for tx in transactions:
        if not in_period(parse_date(tx.date, now), month, year):
            continue
        if tx.type == 'IN':
            pnl.total_cash_in += tx.amount
            if not any(keyword in _text(tx) for keyword in INTERNAL_TRANSFER_KEYWORDS):
                pnl.revenue += tx.amount
            continue

        pnl.total_cash_out += tx.amount
        category = classify_transaction(tx)
        setattr(pnl, category, getattr(pnl, category) + tx.amount)

    pnl.depreciation = depreciation_for_period(assets, month, year)
    return pnl


@dataclass
class JobProfitSummary:
    """Accrual view: revenue and direct cost of jobs closed in the period"""
    job_count: int = 0
    revenue_jasa: float = 0.0
    revenue_part: float = 0.0
    cogs_material: float = 0.0
    cogs_part: float = 0.0
    cogs_external: float = 0.0

    @property
    def total_revenue(self) -> float:
        return self.revenue_jasa + self.revenue_part

    @property
    def total_cogs(self) -> float:
        return self.cogs_material + self.cogs_part + self.cogs_external

    @property
    def gross_profit(self) -> float:
        return self.total_revenue - self.total_cogs

    @property
    def gross_margin(self) -> float:
        """Gross profit as a percentage of revenue"""
        if self.total_revenue <= 0:
            return 0.0
        return self.gross_profit / self.total_revenue * 100


def job_profit_summary(jobs: Iterable[Job], month: int, year: int,
                       now: Optional[datetime] = None) -> JobProfitSummary:
    now = now or datetime.now()
    summary = JobProfitSummary()
    for job in jobs:
        if job.is_deleted or not job.is_closed or not job.closed_at:
            continue
        if not in_period(parse_date(job.closed_at, now), month, year):
            continue
        summary.job_count += 1
        summary.revenue_jasa += job.harga_jasa
        summary.revenue_part += job.harga_part
        summary.cogs_material += job.cost_data.harga_modal_bahan
        summary.cogs_part += job.cost_data.harga_beli_part
        summary.cogs_external += job.cost_data.jasa_external
    return summary
