"""Tests for record normalization"""
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import UNASSIGNED_ADVISOR
from reforma.models import Asset, CashierTransaction, EstimateData, EstimateItem, Job, Settings


class TestJobNormalization:
    def test_from_dict_normalizes_sheet_values(self):
        job = Job.from_dict({
            'id': 'j1',
            'police_number': 'B1234XY',
            'harga_jasa': '750000',
            'harga_part': '',
            'is_closed': 'TRUE',
            'has_invoice': 'false',
            'closed_at': '',
            'cost_data': {'harga_modal_bahan': '100000', 'jasa_external': None},
            'estimate_data': {'jasa_items': [{'name': 'Cat', 'price': '500000', 'panel_count': '1.5'}]},
            'assigned_mechanics': [{'name': 'Mekanik A', 'stage': 'Cat'}, {'stage': 'Poles'}],
            'production_logs': [{'stage': 'Cat', 'type': 'rework'}, {'note': 'no stage'}],
            'unknown_column': 'ignored',
        })

        assert job.harga_jasa == 750000.0
        assert job.harga_part == 0.0
        assert job.is_closed is True
        assert job.has_invoice is False
        assert job.closed_at is None
        assert job.cost_data.total == 100000.0
        assert job.estimate_data.panel_total == 1.5
        assert job.estimate_data.jasa_items[0].qty == 1.0
        assert [m.name for m in job.assigned_mechanics] == ['Mekanik A']
        assert len(job.production_logs) == 1
        assert job.revenue == 750000.0

    def test_advisor_sentinel_and_blank_mean_unassigned(self):
        assert Job.from_dict({'nama_sa': UNASSIGNED_ADVISOR}).nama_sa is None
        assert Job.from_dict({'nama_sa': '  '}).nama_sa is None
        assert Job.from_dict({}).advisor_assigned is False
        assert Job.from_dict({'nama_sa': 'Oscar'}).advisor_assigned is True

    def test_round_trip_through_dict(self):
        job = Job(id='j1', nama_sa='Oscar', estimate_data=EstimateData(
            estimation_number='BE25050001', jasa_items=[EstimateItem(name='Cat', panel_count=2)]))
        assert Job.from_dict(job.to_dict()) == job

    def test_non_text_advisor_and_wo_are_stringified(self):
        job = Job.from_dict({'id': 'j2', 'nama_sa': 123, 'wo_number': 25050001})
        assert job.nama_sa == '123'
        assert job.wo_number == '25050001'

    def test_malformed_cells_fall_back_to_empty(self):
        """Cells that did not decode as JSON must not break the whole snapshot"""
        job = Job.from_dict({
            'id': 'j3',
            'estimate_data': '{broken',
            'cost_data': 'oops',
            'assigned_mechanics': '[bad',
            'production_logs': ['x', {'stage': 'Cat'}],
        })

        assert job.estimate_data == EstimateData()
        assert job.cost_data.total == 0.0
        assert job.assigned_mechanics == []
        assert [log.stage for log in job.production_logs] == ['Cat']

    def test_csi_fields_normalized(self):
        job = Job.from_dict({
            'customer_rating': '4',
            'csi_results': {'Ketepatan Waktu': '5', 'Kebersihan Kendaraan': ''},
        })
        assert job.customer_rating == 4.0
        assert job.csi_results == {'Ketepatan Waktu': 5.0, 'Kebersihan Kendaraan': 0.0}
        assert Job.from_dict({'csi_results': 'n/a'}).csi_results == {}


class TestOtherRecords:
    def test_transaction_defaults(self):
        tx = CashierTransaction.from_dict({'type': 'out', 'amount': '25000', 'ref_job_id': None})
        assert tx.type == 'OUT'
        assert tx.amount == 25000.0
        assert tx.ref_job_id == ''

    def test_asset_status(self):
        assert Asset.from_dict({'status': ''}).is_active is True
        assert Asset.from_dict({'status': 'Sold'}).is_active is False

    def test_settings_blank_values_use_defaults(self):
        settings = Settings.from_dict({'monthly_target': '', 'weekly_target': '100'})
        assert settings.monthly_target == 600_000_000
        assert settings.weekly_target == 100.0
