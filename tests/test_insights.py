"""Tests for the overview counters and market breakdown"""
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import PRIVATE_INSURANCE, WORK_FINISHED, WORK_NOT_STARTED
from reforma.insights import market_breakdown, overview
from reforma.models import EstimateData, Job

NOW = datetime(2025, 5, 20, 12, 0, 0)


class TestOverview:
    def test_counters(self):
        jobs = [
            Job(id='1', wo_number='WO1', status_pekerjaan=WORK_NOT_STARTED,
                created_at='2025-05-02T08:00:00', estimate_data=EstimateData(grand_total=1_000_000)),
            Job(id='2', wo_number='WO2', status_pekerjaan=WORK_FINISHED,
                created_at='2025-04-02T08:00:00', estimate_data=EstimateData(grand_total=2_000_000)),
            Job(id='3', status_pekerjaan=WORK_NOT_STARTED, created_at='2025-05-03T08:00:00',
                estimate_data=EstimateData(grand_total=500_000)),
            Job(id='4', wo_number='WO4', is_closed=True, created_at='2025-05-04T08:00:00',
                estimate_data=EstimateData(grand_total=300_000)),
            Job(id='5', wo_number='WO5', is_deleted=True, created_at='2025-05-04T08:00:00',
                estimate_data=EstimateData(grand_total=9_000_000)),
        ]

        result = overview(jobs, 5, 2025, NOW)

        assert result.active_jobs == 2
        assert result.ready_for_handover == 1
        assert result.revenue_in_period == 1_800_000
        assert result.status_counts == {WORK_NOT_STARTED: 2, WORK_FINISHED: 1}


class TestMarketBreakdown:
    def test_insurance_split_and_rankings(self):
        jobs = [
            Job(id='1', wo_number='WO1', nama_asuransi='Garda Oto', customer_kota='jakarta ',
                car_brand='Mazda', car_model='CX-5', created_at='2025-05-02T08:00:00'),
            Job(id='2', wo_number='WO2', nama_asuransi='Garda Oto', customer_kota='Jakarta',
                car_brand='mazda', car_model='CX-3', created_at='2025-05-03T08:00:00'),
            Job(id='3', wo_number='WO3', nama_asuransi=PRIVATE_INSURANCE, customer_kota='Bekasi',
                car_brand='', created_at='2025-05-04T08:00:00'),
            Job(id='4', nama_asuransi='Sinarmas', created_at='2025-05-04T08:00:00'),
            Job(id='5', wo_number='WO5', nama_asuransi='Sinarmas', closed_at='2025-04-30T08:00:00',
                created_at='2025-05-01T08:00:00'),
        ]

        result = market_breakdown(jobs, 5, 2025, NOW)

        assert result.total_orders == 3
        assert result.insurance_count == 2
        assert result.private_count == 1
        assert result.top_insurance == [('Garda Oto', 2)]
        assert result.top_regions[0] == ('JAKARTA', 2)
        assert result.top_brands == [('MAZDA', 3)]
