# tests/test_health_checker.py

"""Tests for the backend health checker service."""

import unittest
from unittest.mock import MagicMock, patch

from marketplace.services.health_checker import (
    HealthChecker,
    HealthResult,
    default_probes,
    probe_endpoint,
)


class TestProbeEndpoint(unittest.TestCase):
    """Tests for the per-endpoint probe function."""

    def _make_probe(self) -> dict[str, str]:
        """Build a minimal probe config dict."""
        return {"id": "rest", "path": "categories?select=id&limit=1"}

    def test_ok_status(self) -> None:
        """A fast 200 response should return 'ok' status."""
        client = MagicMock()
        client.probe.return_value = MagicMock(status_code=200)

        result = probe_endpoint(client, self._make_probe())
        self.assertEqual(result.status, "ok")
        self.assertEqual(result.probe_id, "rest")
        client.probe.assert_called_once_with("categories?select=id&limit=1")

    def test_down_on_http_error(self) -> None:
        """A non-200 response should return 'down' status."""
        client = MagicMock()
        client.probe.return_value = MagicMock(status_code=401)

        result = probe_endpoint(client, self._make_probe())
        self.assertEqual(result.status, "down")
        self.assertIn("401", result.message)

    def test_down_on_exception(self) -> None:
        """A network error should return 'down' status."""
        client = MagicMock()
        client.probe.side_effect = ConnectionError("Connection refused")

        result = probe_endpoint(client, self._make_probe())
        self.assertEqual(result.status, "down")
        self.assertIn("Connection refused", result.message)

    @patch("marketplace.services.health_checker.time")
    def test_slow_on_high_latency(self, mock_time: MagicMock) -> None:
        """A 200 slower than the threshold is 'slow'."""
        mock_time.monotonic.side_effect = [0.0, 6.0]
        client = MagicMock()
        client.probe.return_value = MagicMock(status_code=200)

        result = probe_endpoint(client, self._make_probe())
        self.assertEqual(result.status, "slow")


class TestHealthChecker(unittest.IsolatedAsyncioTestCase):
    """Tests for the HealthChecker orchestrator."""

    @patch("marketplace.services.health_checker.probe_endpoint")
    async def test_check_all_returns_all_probes(
        self, mock_probe: MagicMock,
    ) -> None:
        """check_all should return one result per probe."""
        mock_probe.return_value = HealthResult(
            probe_id="test",
            status="ok",
            latency_ms=100.0,
            message="",
        )

        checker = HealthChecker(MagicMock())
        results = await checker.check_all()

        self.assertEqual(len(results), len(default_probes()))
        self.assertEqual(mock_probe.call_count, len(default_probes()))


if __name__ == "__main__":
    unittest.main()
