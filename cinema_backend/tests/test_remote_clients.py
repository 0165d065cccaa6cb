import unittest
from unittest.mock import MagicMock, patch

import requests
from gspread.exceptions import GSpreadException
from postgrest.exceptions import APIError
from supabase_auth.errors import AuthSessionMissingError

from cinema_backend.auth import SupabaseAuthClient
from cinema_backend.db import SupabaseDataClient, WatchedMark
from cinema_backend.errors import AuthClientError, DataClientError, SheetClientError
from cinema_backend.sheets import GoogleSheetClient, Suggestion


def _response(data):
    return MagicMock(data=data)


class SupabaseDataClientTests(unittest.TestCase):
    def setUp(self):
        self.supabase = MagicMock()
        self.table = self.supabase.table.return_value
        self.db = SupabaseDataClient(self.supabase)

    def test_list_movies_selects_everything(self):
        self.table.select.return_value.execute.return_value = _response([{"id": 1}])
        self.assertEqual(self.db.list_movies(), [{"id": 1}])
        self.supabase.table.assert_called_with("filmes")
        self.table.select.assert_called_with("*")

    def test_title_search_uses_ilike_pattern(self):
        query = self.table.select.return_value
        query.ilike.return_value.execute.return_value = _response([])
        self.db.search_movies_by_title("Matrix")
        query.ilike.assert_called_once_with("titulo", "%Matrix%")

    def test_find_watched_filters_by_movie_and_user(self):
        first_eq = self.table.select.return_value.eq
        second_eq = first_eq.return_value.eq
        second_eq.return_value.execute.return_value = _response(
            [{"id": 5, "user_id": "user-1", "filme_id": 9}]
        )
        mark = self.db.find_watched("user-1", 9)
        self.assertEqual(mark, WatchedMark(id=5, user_id="user-1", movie_id=9))
        self.supabase.table.assert_called_with("assistido")
        first_eq.assert_called_once_with("filme_id", 9)
        second_eq.assert_called_once_with("user_id", "user-1")

    def test_find_watched_returns_none_when_absent(self):
        query = self.table.select.return_value.eq.return_value.eq.return_value
        query.execute.return_value = _response([])
        self.assertIsNone(self.db.find_watched("user-1", 9))

    def test_insert_and_delete(self):
        self.table.insert.return_value.execute.return_value = _response(
            [{"id": 11, "user_id": "user-1", "filme_id": 9}]
        )
        mark = self.db.insert_watched("user-1", 9)
        self.table.insert.assert_called_once_with({"filme_id": 9, "user_id": "user-1"})
        self.assertEqual(mark.id, 11)

        self.db.delete_watched(11)
        self.table.delete.return_value.eq.assert_called_once_with("id", 11)

    def test_provider_errors_are_translated(self):
        self.table.select.return_value.execute.side_effect = APIError(
            {"message": "permission denied", "code": "42501", "hint": None, "details": None}
        )
        with self.assertRaises(DataClientError) as ctx:
            self.db.list_movies()
        self.assertIsInstance(ctx.exception.__cause__, APIError)


class SupabaseAuthClientTests(unittest.TestCase):
    def setUp(self):
        self.supabase = MagicMock()
        self.auth = SupabaseAuthClient(self.supabase)

    def test_sign_in_relays_payload(self):
        payload = {"user": {"id": "u"}, "session": {"access_token": "a"}}
        response = self.supabase.auth.sign_in_with_password.return_value
        response.model_dump.return_value = payload
        self.assertEqual(self.auth.sign_in_with_password("a@b.c", "pw"), payload)
        self.supabase.auth.sign_in_with_password.assert_called_once_with(
            {"email": "a@b.c", "password": "pw"}
        )

    def test_refresh_with_access_token_sets_session(self):
        self.auth.refresh_session("refresh", "access")
        self.supabase.auth.set_session.assert_called_once_with("access", "refresh")
        self.supabase.auth.refresh_session.assert_not_called()

    def test_refresh_without_access_token(self):
        self.auth.refresh_session("refresh")
        self.supabase.auth.refresh_session.assert_called_once_with("refresh")

    def test_refresh_without_session_is_an_error(self):
        self.supabase.auth.refresh_session.return_value.session = None
        with self.assertRaises(AuthClientError):
            self.auth.refresh_session("refresh")

    def test_provider_errors_are_translated(self):
        self.supabase.auth.refresh_session.side_effect = AuthSessionMissingError()
        with self.assertRaises(AuthClientError):
            self.auth.refresh_session("refresh")

    def test_get_user_without_user_is_an_error(self):
        self.supabase.auth.get_user.return_value = None
        with self.assertRaises(AuthClientError):
            self.auth.get_user("token")


@patch("cinema_backend.sheets.gspread.authorize")
@patch("cinema_backend.sheets.Credentials.from_service_account_file")
class GoogleSheetClientTests(unittest.TestCase):
    def _worksheet(self, authorize, header):
        worksheet = MagicMock()
        worksheet.row_values.return_value = header
        spreadsheet = authorize.return_value.open_by_key.return_value
        spreadsheet.get_worksheet.return_value = worksheet
        return worksheet

    def test_appends_row_in_header_order(self, from_file, authorize):
        worksheet = self._worksheet(authorize, ["timestamp", "titulo", "usuario"])
        client = GoogleSheetClient("sheet-key", "cred.json")
        client.append_suggestion(
            Suggestion(titulo="Dune", usuario="ana", timestamp="2024-01-01T00:00:00.000Z")
        )
        from_file.assert_called_once_with(
            "cred.json", scopes=["https://www.googleapis.com/auth/spreadsheets"]
        )
        authorize.return_value.open_by_key.assert_called_once_with("sheet-key")
        worksheet.append_row.assert_called_once_with(
            ["2024-01-01T00:00:00.000Z", "Dune", "ana"], value_input_option="RAW"
        )

    def test_writes_header_on_empty_sheet(self, from_file, authorize):
        worksheet = self._worksheet(authorize, [])
        client = GoogleSheetClient("sheet-key", "cred.json")
        client.append_suggestion(Suggestion(titulo="Dune", usuario="ana", timestamp="t"))
        self.assertEqual(worksheet.append_row.call_count, 2)
        worksheet.append_row.assert_any_call(["titulo", "usuario", "timestamp"])
        worksheet.append_row.assert_called_with(
            ["Dune", "ana", "t"], value_input_option="RAW"
        )

    def test_opens_by_url_when_given_a_link(self, from_file, authorize):
        url = "https://docs.google.com/spreadsheets/d/abc/edit"
        opened = authorize.return_value.open_by_url.return_value
        opened.get_worksheet.return_value.row_values.return_value = ["titulo"]
        GoogleSheetClient(url, "cred.json").append_suggestion(
            Suggestion(titulo="Dune", usuario="ana")
        )
        authorize.return_value.open_by_url.assert_called_once_with(url)

    def test_errors_are_translated(self, from_file, authorize):
        authorize.side_effect = GSpreadException("quota exceeded")
        client = GoogleSheetClient("sheet-key", "cred.json")
        with self.assertRaises(SheetClientError):
            client.append_suggestion(Suggestion(titulo="Dune", usuario="ana"))

    def test_missing_credentials_file_is_an_error(self, from_file, authorize):
        from_file.side_effect = FileNotFoundError("cred.json")
        client = GoogleSheetClient("sheet-key", "cred.json")
        with self.assertRaises(SheetClientError):
            client.append_suggestion(Suggestion(titulo="Dune", usuario="ana"))

    def test_malformed_credentials_file_is_an_error(self, from_file, authorize):
        from_file.side_effect = ValueError("No key could be detected.")
        client = GoogleSheetClient("sheet-key", "cred.json")
        with self.assertRaises(SheetClientError):
            client.append_suggestion(Suggestion(titulo="Dune", usuario="ana"))

    def test_network_failure_is_an_error(self, from_file, authorize):
        authorize.return_value.open_by_key.side_effect = (
            requests.exceptions.ConnectionError("connection reset")
        )
        client = GoogleSheetClient("sheet-key", "cred.json")
        with self.assertRaises(SheetClientError):
            client.append_suggestion(Suggestion(titulo="Dune", usuario="ana"))


if __name__ == "__main__":
    unittest.main()
