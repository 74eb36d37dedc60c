"""Tests for the command line entry point."""
import os
import sys
from datetime import datetime
from pathlib import Path

# Force local backend for tests
os.environ["USE_LOCAL_STORAGE"] = "true"

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from config import JOBS_COLLECTION, WORKSHOP_NAME
from reforma.ledger_store import LedgerStore
from reforma.models import Job


class TestCommandLine:
    def test_next_number(self, tmp_path, capsys):
        today = datetime.now()
        assert main.main(['--data-dir', str(tmp_path), 'next-number', 'WO']) == 0
        out = capsys.readouterr().out.strip()
        assert out == f"WO{today.year % 100:02d}{today.month:02d}0001"

    def test_close_and_reopen(self, tmp_path):
        store = LedgerStore(data_dir=str(tmp_path), use_sheets=False)
        store.create(JOBS_COLLECTION, Job(id='j1', wo_number='WO25050001').to_dict())
        data_dir = str(tmp_path)

        assert main.main(['--data-dir', data_dir, 'close', 'j1']) == 1
        assert main.main(['--data-dir', data_dir, 'close', 'j1', '--override']) == 0
        assert store.get(JOBS_COLLECTION, 'j1')['is_closed'] is True

        assert main.main(['--data-dir', data_dir, 'reopen', 'j1', '--role', 'Staff']) == 1
        assert main.main(['--data-dir', data_dir, 'reopen', 'j1', '--role', 'Manager']) == 0
        assert store.get(JOBS_COLLECTION, 'j1')['is_closed'] is False

    def test_unknown_job(self, tmp_path):
        assert main.main(['--data-dir', str(tmp_path), 'close', 'missing']) == 1

    def test_kpi_report(self, tmp_path, capsys):
        assert main.main(['--data-dir', str(tmp_path), 'kpi', '--month', '5', '--year', '2025']) == 0
        assert WORKSHOP_NAME in capsys.readouterr().out
