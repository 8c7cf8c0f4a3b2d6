"""
Tests for the Google Sheets row store adapter.

Tests SheetsClient without calling the real Sheets API.
All Google API calls are mocked using unittest.mock.
"""

from unittest.mock import MagicMock, patch

import httplib2
import pytest
from googleapiclient.errors import HttpError

from outreach.errors import SheetNotFoundError, UpstreamUnavailableError
from outreach.sheets import CellWrite, SheetsClient
from outreach.sheets.retry import RetryConfig, retry_with_backoff


def http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": str(status), "reason": "err"}), b"")


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client(service):
    c = SheetsClient(credentials_path="/nonexistent/sa.json", retry=RetryConfig(max_retries=2, base_delay=0.0))
    c._service = service
    return c


def metadata(*titles: str) -> dict:
    return {
        "sheets": [
            {"properties": {"sheetId": 100 + i, "title": title, "index": i}}
            for i, title in reversed(list(enumerate(titles)))
        ]
    }


# ============================================================
# Initialization Tests
# ============================================================


class TestSheetsClientInit:
    def test_init_defaults(self):
        c = SheetsClient(credentials_path="/tmp/sa.json")
        assert c.credentials_path == "/tmp/sa.json"
        assert c._service is None
        assert c.retry.max_retries >= 0

    def test_missing_credentials_raise_upstream(self, monkeypatch):
        """No key file and no inline credentials fails before any request."""
        from outreach import config

        monkeypatch.setattr(config, "SA_EMAIL", "")
        monkeypatch.setattr(config, "SA_PRIVATE_KEY", "")
        c = SheetsClient(credentials_path="/nonexistent/sa.json")
        with pytest.raises(UpstreamUnavailableError):
            c.read_range("sid", "Tracker!A2:N")

    def test_service_built_once(self):
        c = SheetsClient(credentials_path="/nonexistent/sa.json")
        with (
            patch.object(SheetsClient, "_build_credentials", return_value=MagicMock()),
            patch("outreach.sheets.client.google_auth_httplib2.AuthorizedHttp"),
            patch("outreach.sheets.client.build") as mock_build,
        ):
            first = c._get_service()
            second = c._get_service()

        assert first is second
        mock_build.assert_called_once()
        assert mock_build.call_args.args == ("sheets", "v4")


# ============================================================
# Metadata Tests
# ============================================================


class TestSheetMetadata:
    def test_sheet_names_in_tab_order(self, client, service):
        service.spreadsheets.return_value.get.return_value.execute.return_value = metadata("Tracker", "Logs")
        assert client.get_sheet_names("sid") == ["Tracker", "Logs"]

    def test_sheet_ids_cached(self, client, service):
        service.spreadsheets.return_value.get.return_value.execute.return_value = metadata("Tracker", "Logs")
        assert client.get_sheet_id("sid", "Logs") == 101
        assert client.get_sheet_id("sid", "Tracker") == 100
        assert service.spreadsheets.return_value.get.call_count == 1

    def test_unknown_sheet_raises(self, client, service):
        service.spreadsheets.return_value.get.return_value.execute.return_value = metadata("Tracker")
        with pytest.raises(SheetNotFoundError) as exc:
            client.get_sheet_id("sid", "Missing")
        assert exc.value.details["sheets"] == ["Tracker"]

    def test_add_sheet_drops_cached_ids(self, client, service):
        service.spreadsheets.return_value.get.return_value.execute.return_value = metadata("Tracker")
        client.get_sheet_names("sid")
        client.add_sheet("sid", "Logs_DoNotEdit")
        body = service.spreadsheets.return_value.batchUpdate.call_args.kwargs["body"]
        assert body == {"requests": [{"addSheet": {"properties": {"title": "Logs_DoNotEdit"}}}]}

        client.get_sheet_names("sid")
        assert service.spreadsheets.return_value.get.call_count == 2

    def test_refresh_sees_renamed_sheet(self, client, service):
        service.spreadsheets.return_value.get.return_value.execute.side_effect = [metadata("Old"), metadata("Renamed")]
        assert client.get_sheet_names("sid") == ["Old"]
        assert client.get_sheet_names("sid") == ["Old"]

        client.refresh_metadata("sid")
        assert client.get_sheet_names("sid") == ["Renamed"]
        with pytest.raises(SheetNotFoundError):
            client.get_sheet_id("sid", "Old")


# ============================================================
# Read Tests
# ============================================================


class TestReadRange:
    def test_values_converted_to_text(self, client, service):
        values = service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.return_value = {"values": [["ME-0001", 12], ["ME-0002"]]}

        assert client.read_range("sid", "Tracker!A2:N") == [["ME-0001", "12"], ["ME-0002"]]
        assert values.get.call_args.kwargs["range"] == "Tracker!A2:N"

    def test_empty_range(self, client, service):
        service.spreadsheets.return_value.values.return_value.get.return_value.execute.return_value = {}
        assert client.read_range("sid", "Tracker!A2:N") == []

    def test_transient_failure_retried(self, client, service):
        execute = service.spreadsheets.return_value.values.return_value.get.return_value.execute
        execute.side_effect = [http_error(503), {"values": [["ME-0001"]]}]

        assert client.read_range("sid", "Tracker!A2:A") == [["ME-0001"]]
        assert execute.call_count == 2

    def test_retries_exhausted(self, client, service):
        execute = service.spreadsheets.return_value.values.return_value.get.return_value.execute
        execute.side_effect = http_error(500)

        with pytest.raises(UpstreamUnavailableError) as exc:
            client.read_range("sid", "Tracker!A2:A")
        assert exc.value.details["status"] == 500
        assert execute.call_count == 3

    def test_not_found_not_retried(self, client, service):
        execute = service.spreadsheets.return_value.values.return_value.get.return_value.execute
        execute.side_effect = http_error(404)

        with pytest.raises(SheetNotFoundError):
            client.read_range("missing", "Tracker!A2:A")
        assert execute.call_count == 1

    def test_timeout_maps_to_upstream(self, client, service):
        execute = service.spreadsheets.return_value.values.return_value.get.return_value.execute
        execute.side_effect = TimeoutError("timed out")

        with pytest.raises(UpstreamUnavailableError):
            client.read_range("sid", "Tracker!A2:A")


# ============================================================
# Write Tests
# ============================================================


class TestWrites:
    def test_batch_write_body(self, client, service):
        client.batch_write_cells(
            "sid", [CellWrite(range="Tracker!A2", value="ME-0002"), CellWrite(range="Tracker!A3", value="ME-0003")]
        )
        body = service.spreadsheets.return_value.values.return_value.batchUpdate.call_args.kwargs["body"]
        assert body["valueInputOption"] == "RAW"
        assert body["data"] == [
            {"range": "Tracker!A2", "values": [["ME-0002"]]},
            {"range": "Tracker!A3", "values": [["ME-0003"]]},
        ]

    def test_empty_batch_sends_nothing(self, client, service):
        client.batch_write_cells("sid", [])
        service.spreadsheets.return_value.values.return_value.batchUpdate.assert_not_called()

    def test_writes_not_retried(self, client, service):
        execute = service.spreadsheets.return_value.values.return_value.batchUpdate.return_value.execute
        execute.side_effect = http_error(503)

        with pytest.raises(UpstreamUnavailableError):
            client.batch_write_cells("sid", [CellWrite(range="Tracker!A2", value="x")])
        assert execute.call_count == 1

    def test_append_rows(self, client, service):
        client.append_rows("sid", "Tracker!A:N", [["ME-0009", "Acme"]])
        kwargs = service.spreadsheets.return_value.values.return_value.append.call_args.kwargs
        assert kwargs["range"] == "Tracker!A:N"
        assert kwargs["insertDataOption"] == "INSERT_ROWS"
        assert kwargs["body"] == {"values": [["ME-0009", "Acme"]]}

    def test_insert_rows_opens_then_fills(self, client, service):
        service.spreadsheets.return_value.get.return_value.execute.return_value = metadata("Tracker")

        client.insert_rows("sid", "Tracker", 3, [["ME-0003", "Acme", "MEC"]])

        body = service.spreadsheets.return_value.batchUpdate.call_args.kwargs["body"]
        assert body["requests"][0]["insertDimension"] == {
            "range": {"sheetId": 100, "dimension": "ROWS", "startIndex": 3, "endIndex": 4},
            "inheritFromBefore": True,
        }
        update = service.spreadsheets.return_value.values.return_value.update.call_args.kwargs
        assert update["range"] == "Tracker!A4:C4"
        assert update["body"] == {"values": [["ME-0003", "Acme", "MEC"]]}

    def test_delete_rows_range(self, client, service):
        service.spreadsheets.return_value.get.return_value.execute.return_value = metadata("Tracker")

        client.delete_rows("sid", "Tracker", 4, 6)

        body = service.spreadsheets.return_value.batchUpdate.call_args.kwargs["body"]
        assert body["requests"][0]["deleteDimension"]["range"] == {
            "sheetId": 100,
            "dimension": "ROWS",
            "startIndex": 4,
            "endIndex": 6,
        }

    def test_delete_empty_range_is_noop(self, client, service):
        client.delete_rows("sid", "Tracker", 4, 4)
        service.spreadsheets.return_value.batchUpdate.assert_not_called()


# ============================================================
# Backoff Tests
# ============================================================


class TestRetryWithBackoff:
    def test_delays_grow_and_cap(self):
        delays = []
        func = MagicMock(side_effect=UpstreamUnavailableError("down"))
        cfg = RetryConfig(max_retries=4, base_delay=1.0, max_delay=3.0)

        with pytest.raises(UpstreamUnavailableError):
            retry_with_backoff(func, cfg, sleep=delays.append)

        assert func.call_count == 5
        assert len(delays) == 4
        assert 1.0 <= delays[0] <= 1.1
        assert 2.0 <= delays[1] <= 2.2
        assert all(3.0 <= d <= 3.3 for d in delays[2:])

    def test_other_errors_propagate(self):
        func = MagicMock(side_effect=ValueError("bug"))
        with pytest.raises(ValueError):
            retry_with_backoff(func, RetryConfig(max_retries=3), sleep=lambda _: None)
        assert func.call_count == 1

    def test_no_retries_raises_first_error(self):
        error = UpstreamUnavailableError("down")
        func = MagicMock(side_effect=error)
        delays = []
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            retry_with_backoff(func, RetryConfig(max_retries=0), sleep=delays.append)
        assert exc_info.value is error
        assert func.call_count == 1
        assert delays == []

    def test_negative_retries_still_calls_once(self):
        func = MagicMock(return_value="ok")
        assert retry_with_backoff(func, RetryConfig(max_retries=-1), sleep=lambda _: None) == "ok"
        assert func.call_count == 1
