"""
Sheets Client - Row store adapter over the Google Sheets v4 API.

Reads ranges, writes single cells in batches, appends, inserts and deletes
rows via the Google API using a service account (optionally with
domain-wide delegation). Every call is bounded by a socket timeout; reads
are retried with backoff, writes are not.
"""

import logging
import os
import socket

import google_auth_httplib2
import httplib2
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from outreach import config
from outreach.errors import SheetNotFoundError, UpstreamUnavailableError
from outreach.sheets.a1 import column_letter, quote_sheet_name
from outreach.sheets.base import CellWrite
from outreach.sheets.retry import RetryConfig, retry_with_backoff

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (TimeoutError, socket.timeout, OSError, httplib2.HttpLib2Error)


class SheetsClient:
    """Read and mutate rows of Google Sheets spreadsheets."""

    def __init__(
        self,
        credentials_path: str | None = None,
        delegated_user: str | None = None,
        timeout: float | None = None,
        retry: RetryConfig | None = None,
    ):
        """
        Initialize SheetsClient.

        Args:
            credentials_path: Path to service account JSON. If None, uses config.SA_FILE.
            delegated_user: User to impersonate. If None, uses config.DELEGATED_USER.
            timeout: Per-request socket timeout in seconds.
            retry: Backoff policy for reads.
        """
        self.credentials_path = credentials_path or config.SA_FILE
        self.delegated_user = delegated_user or config.DELEGATED_USER
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT_SECONDS
        self.retry = retry or RetryConfig(max_retries=config.MAX_RETRIES)
        self._service = None
        # spreadsheet_id -> {title: sheetId}, in tab order
        self._sheet_ids: dict[str, dict[str, int]] = {}

    # ------------------------------------------------------------------
    # Service / transport
    # ------------------------------------------------------------------

    def _build_credentials(self):
        if self.credentials_path and os.path.exists(self.credentials_path):
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_path, scopes=config.SCOPES
            )
        elif config.SA_EMAIL and config.SA_PRIVATE_KEY:
            creds = service_account.Credentials.from_service_account_info(
                {
                    "type": "service_account",
                    "client_email": config.SA_EMAIL,
                    "private_key": config.SA_PRIVATE_KEY,
                    "token_uri": "https://oauth2.googleapis.com/token",
                },
                scopes=config.SCOPES,
            )
        else:
            raise UpstreamUnavailableError(
                "No Google service account credentials configured",
                details={"credentials_path": self.credentials_path},
            )
        if self.delegated_user:
            creds = creds.with_subject(self.delegated_user)
        return creds

    def _get_service(self):
        """Get Sheets API service using service account."""
        if self._service:
            return self._service

        try:
            creds = self._build_credentials()
            http = google_auth_httplib2.AuthorizedHttp(creds, http=httplib2.Http(timeout=self.timeout))
            self._service = build("sheets", "v4", http=http, cache_discovery=False)
            return self._service
        except (ValueError, KeyError, *_TRANSPORT_ERRORS) as e:
            error_msg = f"Failed to get Sheets service: {e}"
            logger.error(error_msg)
            raise UpstreamUnavailableError(error_msg) from e

    def _execute(self, description: str, request, *, spreadsheet_id: str):
        """Run a prepared API request, translating failures into UpstreamUnavailableError."""
        try:
            return request.execute()
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            error_msg = f"Sheets API {description} failed ({status}): {e}"
            logger.error(error_msg)
            if status == 404:
                raise SheetNotFoundError(error_msg, details={"spreadsheet_id": spreadsheet_id}) from e
            raise UpstreamUnavailableError(
                error_msg, details={"spreadsheet_id": spreadsheet_id, "status": status}
            ) from e
        except _TRANSPORT_ERRORS as e:
            error_msg = f"Sheets API {description} failed: {e}"
            logger.error(error_msg)
            raise UpstreamUnavailableError(error_msg, details={"spreadsheet_id": spreadsheet_id}) from e

    def _read(self, description: str, build_request, spreadsheet_id: str):
        return retry_with_backoff(
            lambda: self._execute(description, build_request(), spreadsheet_id=spreadsheet_id),
            self.retry,
            logger,
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def _load_sheet_ids(self, spreadsheet_id: str) -> dict[str, int]:
        if spreadsheet_id not in self._sheet_ids:
            service = self._get_service()
            metadata = self._read(
                "get metadata",
                lambda: service.spreadsheets().get(
                    spreadsheetId=spreadsheet_id,
                    fields="sheets.properties(sheetId,title,index)",
                ),
                spreadsheet_id,
            )
            sheets = sorted(
                (s.get("properties", {}) for s in metadata.get("sheets", [])),
                key=lambda p: p.get("index", 0),
            )
            self._sheet_ids[spreadsheet_id] = {p["title"]: p["sheetId"] for p in sheets}
        return self._sheet_ids[spreadsheet_id]

    def refresh_metadata(self, spreadsheet_id: str) -> None:
        """Forget cached sheet titles and ids; the next lookup re-fetches them."""
        self._sheet_ids.pop(spreadsheet_id, None)

    def get_sheet_names(self, spreadsheet_id: str) -> list[str]:
        return list(self._load_sheet_ids(spreadsheet_id))

    def get_sheet_id(self, spreadsheet_id: str, sheet_name: str) -> int:
        sheet_ids = self._load_sheet_ids(spreadsheet_id)
        if sheet_name not in sheet_ids:
            raise SheetNotFoundError(
                f"Sheet {sheet_name!r} not found",
                details={"spreadsheet_id": spreadsheet_id, "sheets": list(sheet_ids)},
            )
        return sheet_ids[sheet_name]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_range(self, spreadsheet_id: str, range_spec: str) -> list[list[str]]:
        """
        Read a range as rows of cell text.

        Trailing empty cells and rows are omitted by the API, so rows may be
        shorter than the requested width.
        """
        service = self._get_service()
        response = self._read(
            f"read {range_spec}",
            lambda: service.spreadsheets()
            .values()
            .get(spreadsheetId=spreadsheet_id, range=range_spec, valueRenderOption="FORMATTED_VALUE"),
            spreadsheet_id,
        )
        return [[str(c) for c in row] for row in response.get("values", [])]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def batch_write_cells(self, spreadsheet_id: str, writes: list[CellWrite]) -> None:
        """
        Write cell values in one request.

        Callers chunk above config.BATCH_SIZE; this method sends what it gets.
        """
        if not writes:
            return
        service = self._get_service()
        body = {
            "valueInputOption": "RAW",
            "data": [{"range": w.range, "values": [[w.value]]} for w in writes],
        }
        self._execute(
            f"write {len(writes)} cell(s)",
            service.spreadsheets().values().batchUpdate(spreadsheetId=spreadsheet_id, body=body),
            spreadsheet_id=spreadsheet_id,
        )
        logger.info(f"Wrote {len(writes)} cell(s) to {spreadsheet_id}")

    def append_rows(self, spreadsheet_id: str, range_spec: str, rows: list[list[str]]) -> None:
        if not rows:
            return
        service = self._get_service()
        self._execute(
            f"append {len(rows)} row(s)",
            service.spreadsheets()
            .values()
            .append(
                spreadsheetId=spreadsheet_id,
                range=range_spec,
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": rows},
            ),
            spreadsheet_id=spreadsheet_id,
        )
        logger.info(f"Appended {len(rows)} row(s) to {range_spec}")

    def insert_rows(
        self, spreadsheet_id: str, sheet_name: str, start_index: int, rows: list[list[str]]
    ) -> None:
        """
        Insert rows so the first one lands at 0-based sheet index start_index.

        Two requests: insertDimension opens the blank rows, then the values
        are written into them.
        """
        if not rows:
            return
        service = self._get_service()
        sheet_id = self.get_sheet_id(spreadsheet_id, sheet_name)
        end_index = start_index + len(rows)
        self._execute(
            f"insert rows {start_index}:{end_index}",
            service.spreadsheets().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={
                    "requests": [
                        {
                            "insertDimension": {
                                "range": {
                                    "sheetId": sheet_id,
                                    "dimension": "ROWS",
                                    "startIndex": start_index,
                                    "endIndex": end_index,
                                },
                                "inheritFromBefore": start_index > 0,
                            }
                        }
                    ]
                },
            ),
            spreadsheet_id=spreadsheet_id,
        )
        width = max(len(r) for r in rows)
        target = (
            f"{quote_sheet_name(sheet_name)}!A{start_index + 1}:"
            f"{column_letter(width - 1)}{end_index}"
        )
        self._execute(
            f"fill rows {target}",
            service.spreadsheets()
            .values()
            .update(
                spreadsheetId=spreadsheet_id,
                range=target,
                valueInputOption="RAW",
                body={"values": rows},
            ),
            spreadsheet_id=spreadsheet_id,
        )
        logger.info(f"Inserted {len(rows)} row(s) into {sheet_name} at index {start_index}")

    def delete_rows(
        self, spreadsheet_id: str, sheet_name: str, start_index: int, end_index: int
    ) -> None:
        """Delete rows [start_index, end_index) (0-based, header is index 0)."""
        if end_index <= start_index:
            return
        service = self._get_service()
        sheet_id = self.get_sheet_id(spreadsheet_id, sheet_name)
        self._execute(
            f"delete rows {start_index}:{end_index}",
            service.spreadsheets().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={
                    "requests": [
                        {
                            "deleteDimension": {
                                "range": {
                                    "sheetId": sheet_id,
                                    "dimension": "ROWS",
                                    "startIndex": start_index,
                                    "endIndex": end_index,
                                }
                            }
                        }
                    ]
                },
            ),
            spreadsheet_id=spreadsheet_id,
        )
        logger.info(f"Deleted rows {start_index}:{end_index} from {sheet_name}")

    def add_sheet(self, spreadsheet_id: str, title: str) -> None:
        service = self._get_service()
        self._execute(
            f"add sheet {title}",
            service.spreadsheets().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={"requests": [{"addSheet": {"properties": {"title": title}}}]},
            ),
            spreadsheet_id=spreadsheet_id,
        )
        self._sheet_ids.pop(spreadsheet_id, None)
        logger.info(f"Added sheet {title} to {spreadsheet_id}")
