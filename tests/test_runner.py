# tests/test_runner.py

"""Tests for the headless CLI runners."""

import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from marketplace.cli.runner import (
    build_client,
    run_apply_sql,
    run_health_check,
    show_listing,
)
from marketplace.config.settings import Settings
from marketplace.models.listing import Listing
from marketplace.models.rating import RatingSummary
from marketplace.services.errors import NotFoundError
from marketplace.services.health_checker import HealthResult


def _client() -> MagicMock:
    client = MagicMock()
    client.fetch_listing.return_value = Listing(
        id="L1", title="Desk Lamp", price=120.0, is_deal=True
    )
    client.fetch_rating.return_value = RatingSummary(4.5, 12)
    return client


class TestShowListing(unittest.IsolatedAsyncioTestCase):
    """show_listing output and exit codes."""

    async def test_json_output(self) -> None:
        """A loaded page is printed as JSON and exits 0."""
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await show_listing("L1", "json", client=_client())
        self.assertEqual(code, 0)
        data = json.loads(out.getvalue())
        self.assertEqual(data["listing"]["title"], "Desk Lamp")
        self.assertEqual(data["listing"]["badges"], ["Ghana Fest Deal"])
        self.assertEqual(data["rating"], {"rating": 4.5, "count": 12})

    async def test_table_output(self) -> None:
        """Table format renders the title."""
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await show_listing("L1", "table", client=_client())
        self.assertEqual(code, 0)
        self.assertIn("Desk Lamp", out.getvalue())

    async def test_failed_page_exits_1(self) -> None:
        """A failed load prints nothing on stdout and exits 1."""
        client = _client()
        client.fetch_listing.side_effect = NotFoundError("gone")
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            with self.assertLogs("marketplace.page", level="ERROR"):
                code = await show_listing("L1", "json", client=client)
        self.assertEqual(code, 1)
        self.assertEqual(out.getvalue(), "")

    async def test_idle_page_exits_1(self) -> None:
        """An empty id leaves the page idle; nothing is printed."""
        client = _client()
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await show_listing("", "table", client=client)
        self.assertEqual(code, 1)
        self.assertEqual(out.getvalue(), "")
        client.fetch_listing.assert_not_called()


class TestHealthRunner(unittest.IsolatedAsyncioTestCase):
    """run_health_check exit codes."""

    @patch("marketplace.services.health_checker.probe_endpoint")
    async def test_down_probe_exits_1(self, mock_probe: MagicMock) -> None:
        """Any down probe fails the check."""
        mock_probe.return_value = HealthResult("rest", "down", 0.0, "HTTP 401")
        with patch("sys.stdout", new_callable=io.StringIO):
            code = await run_health_check(client=MagicMock())
        self.assertEqual(code, 1)

    @patch("marketplace.services.health_checker.probe_endpoint")
    async def test_all_ok_exits_0(self, mock_probe: MagicMock) -> None:
        """All probes ok -> exit 0."""
        mock_probe.return_value = HealthResult("rest", "ok", 12.0, "")
        with patch("sys.stdout", new_callable=io.StringIO):
            code = await run_health_check(client=MagicMock())
        self.assertEqual(code, 0)


class TestApplySql(unittest.TestCase):
    """run_apply_sql exit codes."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "fix.sql"
        self.path.write_text("SELECT 1; SELECT 2;", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_success(self) -> None:
        """All statements executed -> exit 0."""
        client = MagicMock()
        code = run_apply_sql([str(self.path)], split=True, client=client)
        self.assertEqual(code, 0)
        self.assertEqual(client.execute_sql.call_count, 2)

    def test_missing_file_exits_1(self) -> None:
        """Unreadable files fail the run."""
        with self.assertLogs("marketplace.cli", level="ERROR"):
            code = run_apply_sql(
                [str(Path(self._tmp.name) / "nope.sql")],
                client=MagicMock(),
            )
        self.assertEqual(code, 1)

    def test_requires_service_role_key(self) -> None:
        """Without the service key nothing is executed."""
        with patch.object(Settings, "SUPABASE_SERVICE_ROLE_KEY", ""):
            code = run_apply_sql([str(self.path)])
        self.assertEqual(code, 1)


class TestBuildClient(unittest.TestCase):
    """build_client configuration errors."""

    def test_unconfigured_backend_exits(self) -> None:
        """A missing URL becomes a clean SystemExit."""
        with patch.object(Settings, "SUPABASE_URL", ""):
            with self.assertRaises(SystemExit):
                build_client()


if __name__ == "__main__":
    unittest.main()
