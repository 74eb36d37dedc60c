"""Ledger store: document collections for jobs, transactions, assets and settings"""
import json
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from config import SETTINGS_COLLECTION
from .errors import PersistenceError
from .models import Settings

Record = Dict[str, Any]
Listener = Callable[[List[Record]], None]


def _use_google_sheets() -> bool:
    """Determine if we should use Google Sheets or local storage"""
    if os.environ.get('USE_LOCAL_STORAGE', '').lower() == 'true':
        return False

    if os.environ.get('GOOGLE_CREDENTIALS_JSON') or os.environ.get('GOOGLE_CREDENTIALS_FILE'):
        return True

    secrets_path = Path(__file__).parent.parent / "secrets" / "google_credentials.json"
    if secrets_path.exists():
        return True

    try:
        import streamlit as st
        return 'gcp_service_account' in st.secrets
    except Exception as e:
        logger.debug(f"No Streamlit secrets available: {e}")
        return False


class LedgerStore:
    """Document collections with create / merge-update / delete and a live feed

    Uses Google Sheets when credentials are available, falls back to local
    JSON files (one per collection) for development and tests.

    Every successful write pushes the full, fresh collection to the
    collection's subscribers. There are no cross-document transactions and
    every update is an unconditional merge.
    """

    def __init__(self, data_dir: str = "data", use_sheets: Optional[bool] = None):
        self.data_dir = Path(data_dir)
        self._use_sheets = _use_google_sheets() if use_sheets is None else use_sheets
        self._sheets_client = None
        self._listeners: Dict[str, List[Listener]] = {}

        if self._use_sheets:
            try:
                from .sheets_storage import get_sheets_client
                self._sheets_client = get_sheets_client()
                logger.info("Using Google Sheets storage")
            except Exception as e:
                logger.warning(f"Failed to connect to Google Sheets: {e}")
                logger.info("Falling back to local storage")
                self._use_sheets = False

        if not self._use_sheets:
            self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def backend(self) -> str:
        return 'sheets' if self._use_sheets else 'local'

    def now(self) -> str:
        """Timestamp used for created_at / closed_at / updated_at"""
        return datetime.now().isoformat(timespec='seconds')

    # ============ READ ============

    def query_all(self, collection: str) -> List[Record]:
        """Get every document of a collection"""
        if self._use_sheets:
            try:
                return self._sheets_client.get_all(collection)
            except Exception as e:
                raise PersistenceError(f"Error reading {collection} from sheets: {e}") from e
        return self._load_local(collection)

    def query_by_field(self, collection: str, field_name: str, value: Any) -> List[Record]:
        return [doc for doc in self.query_all(collection) if doc.get(field_name) == value]

    def get(self, collection: str, doc_id: str) -> Optional[Record]:
        for doc in self.query_all(collection):
            if doc.get('id') == doc_id:
                return doc
        return None

    def load_settings(self) -> Settings:
        """Settings singleton; defaults fill anything not stored"""
        docs = self.query_all(SETTINGS_COLLECTION)
        return Settings.from_dict(docs[0] if docs else None)

    # ============ WRITE ============

    def create(self, collection: str, record: Record) -> str:
        """Add a new document and return its id"""
        doc = dict(record)
        if not doc.get('id'):
            doc['id'] = str(uuid.uuid4())

        if self._use_sheets:
            try:
                self._sheets_client.add(collection, doc)
            except Exception as e:
                raise PersistenceError(f"Error adding to {collection} in sheets: {e}") from e
        else:
            docs = self._load_local(collection)
            docs.append(doc)
            self._save_local(collection, docs)

        self._publish(collection)
        return doc['id']

    def update(self, collection: str, doc_id: str, updates: Record) -> Record:
        """Shallow-merge ``updates`` into a document and return the merged document"""
        if self._use_sheets:
            try:
                result = self._sheets_client.update(collection, doc_id, updates)
            except Exception as e:
                raise PersistenceError(f"Error updating {collection}/{doc_id} in sheets: {e}") from e
            if result is None:
                raise PersistenceError(f"{collection}/{doc_id} not found")
        else:
            docs = self._load_local(collection)
            for i, doc in enumerate(docs):
                if doc.get('id') == doc_id:
                    doc.update(updates)
                    docs[i] = doc
                    break
            else:
                raise PersistenceError(f"{collection}/{doc_id} not found")
            self._save_local(collection, docs)
            result = doc

        self._publish(collection)
        return result

    def delete(self, collection: str, doc_id: str) -> bool:
        """Hard delete a document by id"""
        if self._use_sheets:
            try:
                removed = self._sheets_client.delete(collection, doc_id)
            except Exception as e:
                raise PersistenceError(f"Error deleting {collection}/{doc_id} from sheets: {e}") from e
        else:
            docs = self._load_local(collection)
            remaining = [doc for doc in docs if doc.get('id') != doc_id]
            removed = len(remaining) < len(docs)
            if removed:
                self._save_local(collection, remaining)

        if removed:
            self._publish(collection)
        return removed

    # ============ LIVE FEED ============

    def subscribe(self, collection: str, on_change: Listener) -> Callable[[], None]:
        """
        Register ``on_change`` for a collection.

        The listener receives the current documents right away and again
        after every write to that collection. Returns an unsubscribe function.
        """
        self._listeners.setdefault(collection, []).append(on_change)
        on_change(self.query_all(collection))

        def unsubscribe():
            listeners = self._listeners.get(collection, [])
            if on_change in listeners:
                listeners.remove(on_change)

        return unsubscribe

    def _publish(self, collection: str):
        listeners = list(self._listeners.get(collection, []))
        if not listeners:
            return
        try:
            snapshot = self.query_all(collection)
        except PersistenceError as e:
            # The write itself succeeded; subscribers catch up on the next push
            logger.error(f"Live feed refresh failed for {collection}: {e}")
            return
        for listener in listeners:
            listener(snapshot)

    # ============ LOCAL JSON ============

    def _collection_file(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _load_local(self, collection: str) -> List[Record]:
        path = self._collection_file(collection)
        if not path.exists():
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e

    def _save_local(self, collection: str, docs: List[Record]):
        path = self._collection_file(collection)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(docs, f, indent=2, ensure_ascii=False, default=str)
        except (OSError, TypeError) as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e
