"""Google Sheets backend for the ledger store"""
import json
import os
from typing import List, Optional, Dict, Any
from pathlib import Path

import gspread
import streamlit as st
from google.oauth2.service_account import Credentials
from loguru import logger

SCOPES = [
    'https://www.googleapis.com/auth/spreadsheets',
    'https://www.googleapis.com/auth/drive'
]

SHEET_ID_ENV = 'REFORMA_SHEET_ID'


def encode_cell(value: Any) -> Any:
    """Flatten a document value into something a sheet cell can hold"""
    if isinstance(value, bool):
        return str(value).lower()
    if value is None:
        return ''
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


def decode_cell(value: Any) -> Any:
    """Reverse encode_cell for nested values; scalars are returned as-is"""
    if isinstance(value, str) and value[:1] in ('{', '['):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


class GoogleSheetsClient:
    """One worksheet per ledger collection, first column is the document id"""

    def __init__(self, sheet_id: Optional[str] = None):
        self.sheet_id = sheet_id or os.environ.get(SHEET_ID_ENV, '')
        self.client = None
        self.spreadsheet = None
        self._connect()

    def _get_credentials(self) -> Optional[Credentials]:
        """Get Google credentials from various sources"""

        # Option 1: Streamlit secrets (for deployed app)
        try:
            if hasattr(st, 'secrets') and 'gcp_service_account' in st.secrets:
                creds_dict = dict(st.secrets['gcp_service_account'])
                return Credentials.from_service_account_info(creds_dict, scopes=SCOPES)
        except Exception as e:
            # No secrets.toml outside a Streamlit deployment
            logger.debug(f"Streamlit secrets unavailable: {e}")

        # Option 2: Environment variable with JSON content
        creds_json = os.environ.get('GOOGLE_CREDENTIALS_JSON')
        if creds_json:
            try:
                return Credentials.from_service_account_info(json.loads(creds_json), scopes=SCOPES)
            except ValueError as e:
                logger.warning(f"Ignoring malformed GOOGLE_CREDENTIALS_JSON: {e}")

        # Option 3: Local file in secrets folder
        secrets_path = Path(__file__).parent.parent / "secrets" / "google_credentials.json"
        if secrets_path.exists():
            return Credentials.from_service_account_file(str(secrets_path), scopes=SCOPES)

        # Option 4: File path from environment variable
        creds_file = os.environ.get('GOOGLE_CREDENTIALS_FILE')
        if creds_file and Path(creds_file).exists():
            return Credentials.from_service_account_file(creds_file, scopes=SCOPES)

        return None

    def _connect(self):
        creds = self._get_credentials()
        if not creds:
            raise ValueError(
                "Google credentials not found. Please provide credentials via:\n"
                "1. Streamlit secrets (gcp_service_account)\n"
                "2. GOOGLE_CREDENTIALS_JSON environment variable\n"
                "3. secrets/google_credentials.json file\n"
                "4. GOOGLE_CREDENTIALS_FILE environment variable"
            )
        if not self.sheet_id:
            raise ValueError(f"Spreadsheet id missing, set {SHEET_ID_ENV}")

        self.client = gspread.authorize(creds)
        self.spreadsheet = self.client.open_by_key(self.sheet_id)

    def get_worksheet(self, name: str):
        """Get or create a worksheet by name"""
        try:
            return self.spreadsheet.worksheet(name)
        except gspread.WorksheetNotFound:
            return self.spreadsheet.add_worksheet(title=name, rows=1000, cols=40)

    def get_all(self, collection: str) -> List[Dict[str, Any]]:
        """All documents of a collection, nested values decoded"""
        records = self.get_worksheet(collection).get_all_records()
        return [
            {key: decode_cell(value) for key, value in record.items()}
            for record in records if record.get('id')
        ]

    def _ensure_headers(self, worksheet, keys: List[str]) -> List[str]:
        current = worksheet.row_values(1)
        headers = ['id'] + [h for h in current if h != 'id']
        headers += [k for k in keys if k not in headers]
        if headers != current:
            worksheet.update(range_name='A1', values=[headers])
        return headers

    def add(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        worksheet = self.get_worksheet(collection)
        headers = self._ensure_headers(worksheet, list(record.keys()))
        row = [encode_cell(record.get(header, '')) for header in headers]
        worksheet.append_row(row, value_input_option='RAW')
        return record

    def update(self, collection: str, doc_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge ``updates`` into the row holding ``doc_id``"""
        worksheet = self.get_worksheet(collection)
        cell = worksheet.find(doc_id, in_column=1)
        if not cell:
            return None

        headers = self._ensure_headers(worksheet, list(updates.keys()))
        current_row = worksheet.row_values(cell.row)
        updated_data = {
            header: decode_cell(current_row[i]) if i < len(current_row) else ''
            for i, header in enumerate(headers)
        }
        updated_data.update(updates)

        new_row = [encode_cell(updated_data.get(header, '')) for header in headers]
        worksheet.update(range_name=f'A{cell.row}', values=[new_row], value_input_option='RAW')
        return updated_data

    def delete(self, collection: str, doc_id: str) -> bool:
        worksheet = self.get_worksheet(collection)
        cell = worksheet.find(doc_id, in_column=1)
        if cell:
            worksheet.delete_rows(cell.row)
            return True
        return False


# Singleton instance - cached as Streamlit resource (survives reruns)
@st.cache_resource
def get_sheets_client() -> GoogleSheetsClient:
    """Get or create the Google Sheets client singleton (cached across reruns)."""
    return GoogleSheetsClient()
