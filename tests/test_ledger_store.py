"""Storage regression tests for local JSON backend behavior."""
import json
import os
import sys
from pathlib import Path

import pytest

# Force local backend for tests
os.environ["USE_LOCAL_STORAGE"] = "true"

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import DEFAULT_SETTINGS, JOBS_COLLECTION, SETTINGS_COLLECTION
from reforma.errors import PersistenceError
from reforma.ledger_store import LedgerStore


class TestLedgerStoreLocalFlow:
    def setup_method(self):
        self.pushes = []

    def test_backend_follows_environment(self, tmp_path):
        store = LedgerStore(data_dir=str(tmp_path))
        assert store.backend == 'local'

    def test_create_update_delete(self, tmp_path):
        store = LedgerStore(data_dir=str(tmp_path), use_sheets=False)

        job_id = store.create(JOBS_COLLECTION, {'police_number': 'B1', 'customer_name': 'A'})
        assert job_id
        assert (tmp_path / 'jobs.json').exists()

        merged = store.update(JOBS_COLLECTION, job_id, {'customer_name': 'Budi', 'closed_at': None})
        assert merged == {'id': job_id, 'police_number': 'B1', 'customer_name': 'Budi', 'closed_at': None}
        assert store.get(JOBS_COLLECTION, job_id) == merged
        assert store.query_by_field(JOBS_COLLECTION, 'customer_name', 'Budi') == [merged]

        assert store.delete(JOBS_COLLECTION, job_id) is True
        assert store.delete(JOBS_COLLECTION, job_id) is False
        assert store.query_all(JOBS_COLLECTION) == []

    def test_create_keeps_given_id(self, tmp_path):
        store = LedgerStore(data_dir=str(tmp_path), use_sheets=False)
        assert store.create('assets', {'id': 'asset-1', 'name': 'Oven'}) == 'asset-1'

    def test_update_missing_document_raises(self, tmp_path):
        store = LedgerStore(data_dir=str(tmp_path), use_sheets=False)
        with pytest.raises(PersistenceError):
            store.update(JOBS_COLLECTION, 'nope', {'a': 1})

    def test_corrupt_file_raises_persistence_error(self, tmp_path):
        (tmp_path / 'jobs.json').write_text('{not json', encoding='utf-8')
        store = LedgerStore(data_dir=str(tmp_path), use_sheets=False)
        with pytest.raises(PersistenceError):
            store.query_all(JOBS_COLLECTION)

    def test_subscribe_pushes_snapshot_on_every_write(self, tmp_path):
        store = LedgerStore(data_dir=str(tmp_path), use_sheets=False)
        store.create(JOBS_COLLECTION, {'id': 'j1'})

        unsubscribe = store.subscribe(JOBS_COLLECTION, self.pushes.append)
        assert self.pushes == [[{'id': 'j1'}]]

        store.update(JOBS_COLLECTION, 'j1', {'is_closed': True})
        store.create(JOBS_COLLECTION, {'id': 'j2'})
        store.create('transactions', {'id': 't1'})
        assert len(self.pushes) == 3
        assert self.pushes[-1] == [{'id': 'j1', 'is_closed': True}, {'id': 'j2'}]

        unsubscribe()
        store.delete(JOBS_COLLECTION, 'j1')
        assert len(self.pushes) == 3

    def test_settings_defaults_and_stored_values(self, tmp_path):
        store = LedgerStore(data_dir=str(tmp_path), use_sheets=False)
        settings = store.load_settings()
        assert settings.monthly_target == DEFAULT_SETTINGS['monthly_target']
        assert settings.mechanic_names == DEFAULT_SETTINGS['mechanic_names']

        with open(tmp_path / f"{SETTINGS_COLLECTION}.json", 'w', encoding='utf-8') as f:
            json.dump([{'id': 'main', 'monthly_target': '450000000', 'mechanic_names': ['Mekanik Z'],
                        'language': ''}], f)

        settings = store.load_settings()
        assert settings.monthly_target == 450_000_000
        assert settings.mechanic_names == ['Mekanik Z']
        assert settings.language == DEFAULT_SETTINGS['language']
