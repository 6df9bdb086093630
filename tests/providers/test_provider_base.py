"""Tests for adapter base classes."""

from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from surfcast.cache.models import Location, ProviderRecord
from surfcast.providers.base import (
    AdapterResult,
    Deadline,
    HTTPProviderAdapter,
    ProviderTransportError,
    RequestConfig,
)


class EchoAdapter(HTTPProviderAdapter):
    name = "echo"

    def _fetch_records(self, location):
        payload = self._get_json("https://echo.test", params={"q": location.name})
        return [ProviderRecord(date=date.fromisoformat(d)) for d in payload]


class TestAdapterResult:
    """Tests for AdapterResult."""

    def test_dates_are_distinct(self):
        day = date(2026, 10, 19)
        result = AdapterResult("x", [ProviderRecord(date=day), ProviderRecord(date=day)])
        assert result.dates == {day}
        assert not result.is_empty

    def test_empty(self):
        result = AdapterResult.empty("x", error="boom")
        assert result.is_empty
        assert result.error == "boom"
        assert "FAILED" in str(result)


class TestDeadline:
    """Tests for Deadline."""

    def test_expiry(self):
        now = [0.0]
        deadline = Deadline(5.0, clock=lambda: now[0])
        deadline.check("first request")
        now[0] = 5.0
        assert deadline.expired
        with pytest.raises(ProviderTransportError, match="second request"):
            deadline.check("second request")


class TestHTTPProviderAdapter:
    """Tests for HTTPProviderAdapter."""

    @pytest.fixture
    def session(self):
        return MagicMock(spec=requests.Session)

    @pytest.fixture
    def location(self):
        return Location(9, "Hossegor", 43.67, -1.44)

    def test_success(self, session, location):
        response = MagicMock()
        response.json.return_value = ["2026-10-19", "2026-10-20"]
        session.get.return_value = response
        adapter = EchoAdapter(session=session, request_config=RequestConfig(timeout=2.5))

        result = adapter.fetch(location)

        assert len(result.dates) == 2
        session.get.assert_called_once_with(
            "https://echo.test", params={"q": "Hossegor"}, timeout=2.5
        )

    def test_timeout_becomes_empty_result(self, session, location):
        session.get.side_effect = requests.Timeout()
        adapter = EchoAdapter(session=session)

        result = adapter.fetch(location)

        assert result.is_empty
        assert "timeout" in result.error

    def test_connection_error_becomes_empty_result(self, session, location):
        session.get.side_effect = requests.ConnectionError("refused")
        result = EchoAdapter(session=session).fetch(location)
        assert result.is_empty
        assert "refused" in result.error

    def test_close_closes_session(self, session):
        EchoAdapter(session=session).close()
        session.close.assert_called_once()
