"""Tests for the monthly document number sequences"""
import pytest
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from reforma.models import EstimateData, Job
from reforma.numbering import existing_number, next_number, next_number_for, number_prefix


def wo_job(number):
    return Job(id=number, wo_number=number)


def be_job(number):
    return Job(id=number, estimate_data=EstimateData(estimation_number=number))


class TestNumberPrefix:
    def test_prefix_uses_two_digit_year_and_month(self):
        assert number_prefix('BE', 2025, 5) == 'BE2505'
        assert number_prefix('WO', 2030, 12) == 'WO3012'

    def test_unknown_family_rejected(self):
        with pytest.raises(ValueError):
            number_prefix('XX', 2025, 5)


class TestNextNumber:
    def test_first_number_of_month_is_0001(self):
        assert next_number('WO', 2025, 5, []) == 'WO25050001'

    def test_highest_suffix_plus_one(self):
        """Gaps are not refilled: max(0003, 0007) + 1 = 0008"""
        records = [wo_job('WO25050003'), wo_job('WO25050007'), wo_job('WO25050001')]
        assert next_number('WO', 2025, 5, records) == 'WO25050008'

    def test_other_months_and_families_ignored(self):
        records = [wo_job('WO25040099'), be_job('BE25050042'), wo_job('')]
        assert next_number('WO', 2025, 5, records) == 'WO25050001'
        assert next_number('BE', 2025, 5, records) == 'BE25050043'

    def test_non_numeric_suffix_skipped(self):
        records = [wo_job('WO2505ABCD'), wo_job('WO25050002')]
        assert next_number('WO', 2025, 5, records) == 'WO25050003'

    def test_sequence_grows_past_padding(self):
        records = [wo_job('WO25059999')]
        assert next_number('WO', 2025, 5, records) == 'WO250510000'

    def test_reads_raw_dicts(self):
        records = [
            {'wo_number': 'WO25050004'},
            {'estimate_data': {'estimation_number': 'BE25050010'}},
            {'estimate_data': None},
        ]
        assert next_number('WO', 2025, 5, records) == 'WO25050005'
        assert next_number('BE', 2025, 5, records) == 'BE25050011'

    def test_monotonic_over_repeated_allocation(self):
        records = []
        issued = []
        for _ in range(5):
            number = next_number_for('BE', records, date(2025, 5, 20))
            issued.append(number)
            records.append(be_job(number))
        assert issued == sorted(issued)
        assert len(set(issued)) == 5
        assert issued[-1] == 'BE25050005'

    def test_same_snapshot_gives_same_number(self):
        """No persistence: two callers on the same snapshot collide"""
        records = [wo_job('WO25050001')]
        assert next_number('WO', 2025, 5, records) == next_number('WO', 2025, 5, records)


class TestExistingNumber:
    def test_job_and_dict_forms(self):
        job = Job(wo_number='WO25050001', estimate_data=EstimateData(estimation_number='BE25050001'))
        assert existing_number(job, 'WO') == 'WO25050001'
        assert existing_number(job, 'BE') == 'BE25050001'
        assert existing_number(job.to_dict(), 'BE') == 'BE25050001'
