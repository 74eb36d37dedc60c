"""KPI and profit analytics over a snapshot of jobs, transactions and assets"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from config import (
    CRC_SUCCESS_STATUS, UNASSIGNED_ADVISOR_LABEL, VEHICLE_READY_FOR_PICKUP,
)
from .accounting import CashPnL, cash_profit_and_loss
from .dates import days_in_month, in_period, parse_date
from .models import Asset, CashierTransaction, Job, Settings
from .receivables import AgingProfile, ar_aging


@dataclass
class WeeklyTarget:
    """
    Catch-up target: whatever is left of the monthly goal spread over the
    weeks that remain. Falling behind raises the weekly bar, getting ahead
    lowers it.
    """
    monthly_target: float
    achieved: float
    remaining_target: float
    remaining_weeks: int
    adjusted_weekly_target: float
    catch_up_active: bool


@dataclass
class FunnelStage:
    candidates: int = 0
    contacted: int = 0
    success: int = 0


@dataclass
class FunnelKpi:
    booking: FunnelStage
    service: FunnelStage
    pickup: FunnelStage

    @property
    def total_contacted(self) -> int:
        return self.booking.contacted + self.service.contacted + self.pickup.contacted

    @property
    def total_success(self) -> int:
        return self.booking.success + self.service.success + self.pickup.success

    @property
    def success_ratio(self) -> float:
        if self.total_contacted == 0:
            return 0.0
        return self.total_success / self.total_contacted


@dataclass
class MechanicStats:
    units: int = 0
    panels: float = 0.0
    reworks: int = 0


@dataclass
class AdvisorStats:
    wo_count: int = 0
    est_count: int = 0
    revenue: float = 0.0
    gp_contribution: float = 0.0


@dataclass
class CsiSummary:
    """Customer satisfaction from CRC follow-up surveys; unrated jobs are ignored"""
    rated_jobs: int = 0
    average_rating: float = 0.0
    indicator_averages: Dict[str, float] = field(default_factory=dict)

    @property
    def indicator_average(self) -> float:
        scored = [score for score in self.indicator_averages.values() if score > 0]
        if not scored:
            return 0.0
        return sum(scored) / len(scored)


@dataclass
class KpiSnapshot:
    month: int
    year: int
    realized_gp: float
    weekly_target: WeeklyTarget
    current_week_gp: float
    funnel: FunnelKpi
    aging: AgingProfile
    mechanics: Dict[str, MechanicStats] = field(default_factory=dict)
    advisors: Dict[str, AdvisorStats] = field(default_factory=dict)
    profit_and_loss: Optional[CashPnL] = None
    csi: CsiSummary = field(default_factory=CsiSummary)

    @property
    def monthly_progress(self) -> float:
        """Realized GP as a percentage of the monthly target, capped at 100"""
        if self.weekly_target.monthly_target <= 0:
            return 0.0
        return min(self.realized_gp / self.weekly_target.monthly_target * 100, 100.0)


def gross_profit(job: Job) -> float:
    """Revenue (jasa + part) minus realized cost (material + parts + sublet)"""
    return job.revenue - job.cost_data.total


def _is_current_month(month: int, year: int, now: datetime) -> bool:
    return month == now.month and year == now.year


def closed_in_period(jobs: Iterable[Job], month: int, year: int, now: datetime) -> List[Job]:
    return [
        job for job in jobs
        if job.is_closed and job.closed_at and not job.is_deleted
        and in_period(parse_date(job.closed_at, now), month, year)
    ]


def created_in_period(jobs: Iterable[Job], month: int, year: int, now: datetime) -> List[Job]:
    return [
        job for job in jobs
        if not job.is_deleted and in_period(parse_date(job.created_at, now), month, year)
    ]


def realized_jobs(jobs: Iterable[Job], month: int, year: int,
                  now: Optional[datetime] = None) -> List[Job]:
    """Invoiced jobs closed within the period; only these count as realized profit"""
    now = now or datetime.now()
    return [job for job in closed_in_period(jobs, month, year, now) if job.has_invoice]


def realized_gross_profit(jobs: Iterable[Job], month: int, year: int,
                          now: Optional[datetime] = None) -> float:
    return sum(gross_profit(job) for job in realized_jobs(jobs, month, year, now))


def remaining_weeks(month: int, year: int, now: Optional[datetime] = None) -> int:
    """Weeks left in the month counting today; a month that is not current has 1"""
    now = now or datetime.now()
    if not _is_current_month(month, year, now):
        return 1
    remaining_days = days_in_month(month, year) - now.day + 1
    return max(math.ceil(remaining_days / 7), 1)


def catch_up_target(monthly_target: float, achieved: float, weeks_left: int) -> WeeklyTarget:
    weeks_left = max(int(weeks_left), 1)
    remaining_target = max(monthly_target - achieved, 0)
    adjusted = remaining_target / weeks_left
    return WeeklyTarget(
        monthly_target=monthly_target,
        achieved=achieved,
        remaining_target=remaining_target,
        remaining_weeks=weeks_left,
        adjusted_weekly_target=adjusted,
        catch_up_active=adjusted > monthly_target / 4,
    )


def current_week_achievement(realized: Iterable[Job], month: int, year: int,
                             now: Optional[datetime] = None) -> float:
    """
    GP closed in the trailing 7 days for the current month.

    A past month has no "now" to anchor on, so a quarter of the month's GP
    is reported instead.
    """
    now = now or datetime.now()
    realized = list(realized)
    if not _is_current_month(month, year, now):
        return sum(gross_profit(job) for job in realized) / 4

    total = 0.0
    for job in realized:
        age_days = (now - parse_date(job.closed_at, now)).total_seconds() / 86400
        if age_days <= 7:
            total += gross_profit(job)
    return total


def conversion_funnel(jobs: Iterable[Job], month: int, year: int,
                      now: Optional[datetime] = None) -> FunnelKpi:
    """Booking, service follow-up and pickup contact conversion for the period"""
    now = now or datetime.now()
    jobs = list(jobs)

    booking_jobs = created_in_period(jobs, month, year, now)
    closed = closed_in_period(jobs, month, year, now)
    closed_ids = {job.id for job in closed}
    pickup_jobs = [
        job for job in jobs
        if not job.is_deleted
        and (job.status_kendaraan == VEHICLE_READY_FOR_PICKUP or job.id in closed_ids)
    ]

    return FunnelKpi(
        booking=FunnelStage(
            candidates=len(booking_jobs),
            contacted=sum(1 for j in booking_jobs if j.is_booking_contacted),
            success=sum(1 for j in booking_jobs if j.booking_success),
        ),
        service=FunnelStage(
            candidates=len(closed),
            contacted=sum(1 for j in closed if j.is_service_contacted),
            success=sum(1 for j in closed if j.crc_follow_up_status == CRC_SUCCESS_STATUS),
        ),
        pickup=FunnelStage(
            candidates=len(pickup_jobs),
            contacted=sum(1 for j in pickup_jobs if j.is_pickup_contacted),
            success=sum(1 for j in pickup_jobs if j.pickup_success),
        ),
    )


def mechanic_productivity(jobs: Iterable[Job], settings: Settings, month: int, year: int,
                          now: Optional[datetime] = None) -> Dict[str, MechanicStats]:
    """
    Units, panels and reworks per mechanic over jobs closed in the period.

    Every mechanic on the roster appears, even with no activity. A rework is
    charged to whoever was assigned to the stage where it was logged, not
    to the user who logged it.
    """
    now = now or datetime.now()
    stats: Dict[str, MechanicStats] = {name: MechanicStats() for name in settings.mechanic_names}

    for job in closed_in_period(jobs, month, year, now):
        panels = job.estimate_data.panel_total
        involved = dict.fromkeys(a.name for a in job.assigned_mechanics)
        for name in involved:
            mech = stats.setdefault(name, MechanicStats())
            mech.units += 1
            mech.panels += panels

        for log in job.production_logs:
            if log.type != 'rework':
                continue
            owner = next((a.name for a in job.assigned_mechanics if a.stage == log.stage), None)
            if owner:
                stats.setdefault(owner, MechanicStats()).reworks += 1

    return stats


def advisor_performance(jobs: Iterable[Job], month: int, year: int,
                        now: Optional[datetime] = None) -> Dict[str, AdvisorStats]:
    """WO count, revenue and GP from realized jobs; estimates from jobs created in the period"""
    now = now or datetime.now()
    jobs = list(jobs)
    stats: Dict[str, AdvisorStats] = {}

    for job in realized_jobs(jobs, month, year, now):
        advisor = stats.setdefault(job.nama_sa or UNASSIGNED_ADVISOR_LABEL, AdvisorStats())
        advisor.wo_count += 1
        advisor.revenue += job.estimate_data.grand_total
        advisor.gp_contribution += gross_profit(job)

    for job in created_in_period(jobs, month, year, now):
        advisor = stats.setdefault(job.nama_sa or UNASSIGNED_ADVISOR_LABEL, AdvisorStats())
        if job.estimate_data.estimation_number:
            advisor.est_count += 1

    return stats


def customer_satisfaction(jobs: Iterable[Job], settings: Settings, month: int, year: int,
                          now: Optional[datetime] = None) -> CsiSummary:
    """
    Average overall rating and per-indicator scores of jobs closed in the period.

    Configured indicators always appear; an indicator nobody scored is 0.
    """
    now = now or datetime.now()
    closed = closed_in_period(jobs, month, year, now)
    rated = [job for job in closed if job.customer_rating > 0]

    scores: Dict[str, List[float]] = {name: [] for name in settings.csi_indicators}
    for job in closed:
        for name, score in job.csi_results.items():
            if score > 0:
                scores.setdefault(name, []).append(score)

    return CsiSummary(
        rated_jobs=len(rated),
        average_rating=sum(job.customer_rating for job in rated) / len(rated) if rated else 0.0,
        indicator_averages={
            name: sum(values) / len(values) if values else 0.0
            for name, values in scores.items()
        },
    )


def compute_kpis(jobs: Iterable[Job], transactions: Iterable[CashierTransaction],
                 assets: Iterable[Asset], settings: Settings, month: int, year: int,
                 now: Optional[datetime] = None) -> KpiSnapshot:
    """Recompute every KPI for the period from the full snapshot"""
    now = now or datetime.now()
    jobs = list(jobs)
    transactions = list(transactions)

    realized = realized_jobs(jobs, month, year, now)
    realized_gp = sum(gross_profit(job) for job in realized)
    target = catch_up_target(settings.monthly_target, realized_gp, remaining_weeks(month, year, now))

    return KpiSnapshot(
        month=month,
        year=year,
        realized_gp=realized_gp,
        weekly_target=target,
        current_week_gp=current_week_achievement(realized, month, year, now),
        funnel=conversion_funnel(jobs, month, year, now),
        aging=ar_aging(jobs, transactions, now),
        mechanics=mechanic_productivity(jobs, settings, month, year, now),
        advisors=advisor_performance(jobs, month, year, now),
        profit_and_loss=cash_profit_and_loss(transactions, assets, month, year, now),
        csi=customer_satisfaction(jobs, settings, month, year, now),
    )
