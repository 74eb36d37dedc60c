"""Workshop overview counters and market breakdown"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from config import PRIVATE_INSURANCE, WORK_FINISHED
from .dates import in_period, parse_date
from .models import Job

Ranking = List[Tuple[str, int]]


@dataclass
class Overview:
    active_jobs: int = 0            # WO issued, not closed
    ready_for_handover: int = 0     # work finished, not closed yet
    revenue_in_period: float = 0.0  # grand total of jobs created in the period
    status_counts: Dict[str, int] = field(default_factory=dict)


def overview(jobs: Iterable[Job], month: int, year: int,
             now: Optional[datetime] = None) -> Overview:
    now = now or datetime.now()
    jobs = [job for job in jobs if not job.is_deleted]
    open_jobs = [job for job in jobs if not job.is_closed]
    return Overview(
        active_jobs=sum(1 for job in open_jobs if job.wo_number),
        ready_for_handover=sum(1 for job in open_jobs if job.status_pekerjaan == WORK_FINISHED),
        revenue_in_period=sum(
            job.estimate_data.grand_total for job in jobs
            if in_period(parse_date(job.created_at, now), month, year)
        ),
        status_counts=dict(Counter(job.status_pekerjaan for job in open_jobs)),
    )


@dataclass
class MarketBreakdown:
    total_orders: int = 0
    insurance_count: int = 0
    private_count: int = 0
    top_insurance: Ranking = field(default_factory=list)
    top_regions: Ranking = field(default_factory=list)
    top_brands: Ranking = field(default_factory=list)
    top_models: Ranking = field(default_factory=list)
    top_colors: Ranking = field(default_factory=list)


def _top(values: Iterable[str], limit: int) -> Ranking:
    return Counter(values).most_common(limit)


def market_breakdown(jobs: Iterable[Job], month: int, year: int,
                     now: Optional[datetime] = None) -> MarketBreakdown:
    """Order sources and vehicle mix for WOs dated (closed, else created) in the period"""
    now = now or datetime.now()
    period_jobs = [
        job for job in jobs
        if not job.is_deleted and job.wo_number
        and in_period(parse_date(job.closed_at or job.created_at, now), month, year)
    ]
    insured = [job for job in period_jobs if job.nama_asuransi != PRIVATE_INSURANCE]
    return MarketBreakdown(
        total_orders=len(period_jobs),
        insurance_count=len(insured),
        private_count=len(period_jobs) - len(insured),
        top_insurance=_top((job.nama_asuransi for job in insured), 5),
        top_regions=_top(((job.customer_kota or 'TIDAK TERDATA').upper().strip() for job in period_jobs), 5),
        top_brands=_top(((job.car_brand or 'MAZDA').upper() for job in period_jobs), 3),
        top_models=_top(((job.car_model or 'TIPE LAIN').upper() for job in period_jobs), 3),
        top_colors=_top(((job.warna_mobil or 'WARNA LAIN').upper() for job in period_jobs), 3),
    )
