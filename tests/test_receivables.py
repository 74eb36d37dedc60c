"""Tests for outstanding balances and AR aging"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from reforma.models import CashierTransaction, EstimateData, Job
from reforma.receivables import ReceivableItem, ar_aging, paid_by_job, receivables

NOW = datetime(2025, 5, 20, 12, 0, 0)


def wo(job_id, grand_total=1_000_000, age_days=0, **kwargs):
    return Job(
        id=job_id,
        wo_number=f"WO2505{job_id}",
        customer_name=f"Customer {job_id}",
        estimate_data=EstimateData(grand_total=grand_total),
        created_at=(NOW - timedelta(days=age_days)).isoformat(),
        **kwargs,
    )


def payment(job_id, amount, tx_type='IN'):
    return CashierTransaction(id=f"tx-{job_id}-{amount}", type=tx_type, amount=amount,
                              date=NOW.isoformat(), ref_job_id=job_id)


class TestPaidByJob:
    def test_sums_in_transactions_only(self):
        paid = paid_by_job([
            payment('0001', 400_000),
            payment('0001', 100_000),
            payment('0001', 50_000, tx_type='OUT'),
            CashierTransaction(type='IN', amount=999),
        ])
        assert paid == {'0001': 500_000}


class TestReceivables:
    def test_partial_payment_ten_days_old_is_warning(self):
        """
        Bill 1,000,000, paid 400,000, created 10 days ago
        Expected: 600,000 remaining in the warning bucket
        """
        jobs = [wo('0001', age_days=10)]
        transactions = [payment('0001', 400_000)]

        profile = ar_aging(jobs, transactions, NOW)

        assert profile.warning.count == 1
        assert profile.warning.total == 600_000
        assert profile.warning.items[0].remaining == 600_000
        assert profile.current.count == 0
        assert profile.critical.count == 0

    def test_buckets_partition_outstanding_wos(self):
        """Boundaries: 7 days is still current, 14 days still warning"""
        jobs = [wo(f"{age:04d}", age_days=age) for age in (0, 7, 8, 14, 15, 40)]

        profile = ar_aging(jobs, [], NOW)

        assert profile.current.count == 2
        assert profile.warning.count == 2
        assert profile.critical.count == 2
        assert profile.count == len(receivables(jobs, [], NOW))
        assert profile.total == 6_000_000
        ids = [item.job_id for bucket in (profile.current, profile.warning, profile.critical)
               for item in bucket.items]
        assert sorted(ids) == sorted(job.id for job in jobs)

    def test_threshold_and_exclusions(self):
        jobs = [
            wo('0001'),                                   # fully paid
            wo('0002'),                                   # 1,000 left: rounding
            wo('0003', is_deleted=True),
            Job(id='draft', estimate_data=EstimateData(grand_total=500_000)),
            wo('0004', is_closed=True),                   # closed, still owes
        ]
        transactions = [payment('0001', 1_000_000), payment('0002', 999_000)]

        items = receivables(jobs, transactions, NOW)

        assert [item.job_id for item in items] == ['0004']
        assert ar_aging(jobs, transactions, NOW).count == 0

    def test_missing_created_at_ages_zero(self):
        job = wo('0001')
        job.created_at = None
        assert receivables([job], [], NOW)[0].age_days == 0


class TestPaymentStatus:
    def make(self, bill, paid):
        return ReceivableItem(job_id='1', wo_number='WO1', customer_name='A', total_bill=bill,
                              paid_amount=paid, remaining=bill - paid, age_days=0, is_closed=False)

    def test_statuses(self):
        assert self.make(1_000_000, 1_000_000).payment_status == 'PAID'
        assert self.make(1_000_000, 400_000).payment_status == 'PARTIAL'
        assert self.make(1_000_000, 0).payment_status == 'UNPAID'
