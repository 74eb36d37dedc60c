"""Tabular views of a KPI snapshot"""
from typing import Any, Dict

import pandas as pd

from config import WORKSHOP_NAME
from .analytics import KpiSnapshot


def format_rupiah(amount: float) -> str:
    return f"Rp {amount:,.0f}".replace(',', '.')


class KpiReport:
    """
    Turns a KpiSnapshot into pandas DataFrames and a flat summary.
    """

    def __init__(self, snapshot: KpiSnapshot, workshop_name: str = WORKSHOP_NAME):
        self.snapshot = snapshot
        self.workshop_name = workshop_name

    def summary(self) -> Dict[str, Any]:
        s = self.snapshot
        pnl = s.profit_and_loss
        return {
            'period': f"{s.month:02d}/{s.year}",
            'realized_gp': s.realized_gp,
            'monthly_target': s.weekly_target.monthly_target,
            'monthly_progress_pct': s.monthly_progress,
            'remaining_weeks': s.weekly_target.remaining_weeks,
            'adjusted_weekly_target': s.weekly_target.adjusted_weekly_target,
            'catch_up_active': s.weekly_target.catch_up_active,
            'current_week_gp': s.current_week_gp,
            'success_ratio': s.funnel.success_ratio,
            'avg_rating': s.csi.average_rating,
            'total_ar': s.aging.total,
            'net_profit': pnl.net_profit if pnl else 0.0,
            'net_cash_flow': pnl.net_cash_flow if pnl else 0.0,
        }

    def mechanics_dataframe(self) -> pd.DataFrame:
        data = [
            {'Mechanic': name, 'Units': m.units, 'Panels': m.panels, 'Reworks': m.reworks}
            for name, m in sorted(self.snapshot.mechanics.items())
        ]
        return pd.DataFrame(data, columns=['Mechanic', 'Units', 'Panels', 'Reworks'])

    def advisors_dataframe(self) -> pd.DataFrame:
        data = [
            {
                'Advisor': name,
                'WO': a.wo_count,
                'Estimates': a.est_count,
                'Revenue': a.revenue,
                'GP': a.gp_contribution,
            }
            for name, a in sorted(self.snapshot.advisors.items())
        ]
        return pd.DataFrame(data, columns=['Advisor', 'WO', 'Estimates', 'Revenue', 'GP'])

    def aging_dataframe(self) -> pd.DataFrame:
        aging = self.snapshot.aging
        rows = [
            ('Current (0-7d)', aging.current),
            ('Warning (8-14d)', aging.warning),
            ('Critical (>14d)', aging.critical),
        ]
        data = [{'Bucket': label, 'Count': b.count, 'Outstanding': b.total} for label, b in rows]
        # Add summary row
        data.append({'Bucket': 'Total', 'Count': aging.count, 'Outstanding': aging.total})
        return pd.DataFrame(data)

    def pnl_dataframe(self) -> pd.DataFrame:
        pnl = self.snapshot.profit_and_loss
        if pnl is None:
            return pd.DataFrame(columns=['Line', 'Amount'])
        lines = [
            ('Revenue', pnl.revenue),
            ('COGS (vendor)', -pnl.cogs_vendor),
            ('Gross profit', pnl.gross_profit),
            ('Payroll', -pnl.payroll),
            ('Operational', -pnl.operational),
            ('Tax', -pnl.tax),
            ('Depreciation', -pnl.depreciation),
            ('Net profit', pnl.net_profit),
            ('Asset purchases', -pnl.asset_purchase),
            ('Net cash flow', pnl.net_cash_flow),
        ]
        return pd.DataFrame(lines, columns=['Line', 'Amount'])

    def to_text(self) -> str:
        """Plain-text report for the terminal"""
        summary = self.summary()
        lines = [
            self.workshop_name,
            f"Period: {summary['period']}",
            "",
            f"Realized GP:      {format_rupiah(summary['realized_gp'])} "
            f"({summary['monthly_progress_pct']:.1f}% of {format_rupiah(summary['monthly_target'])})",
            f"Weekly target:    {format_rupiah(summary['adjusted_weekly_target'])} "
            f"over {summary['remaining_weeks']} week(s)"
            + ("  [CATCH-UP]" if summary['catch_up_active'] else ""),
            f"This week GP:     {format_rupiah(summary['current_week_gp'])}",
            f"Contact success:  {summary['success_ratio'] * 100:.1f}%",
            f"Customer rating:  {summary['avg_rating']:.1f} / 5 ({self.snapshot.csi.rated_jobs} rated)",
            "",
            "Receivables", self.aging_dataframe().to_string(index=False), "",
            "Mechanics", self.mechanics_dataframe().to_string(index=False), "",
            "Service advisors", self.advisors_dataframe().to_string(index=False), "",
            "Cash P&L", self.pnl_dataframe().to_string(index=False),
        ]
        return "\n".join(lines)
