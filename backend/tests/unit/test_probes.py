"""
Tests for health probe functions.

This module tests:
- check_database() probe
- check_email_provider() and check_openrouter() probes

Tests follow AAA (Arrange, Act, Assert) pattern with mocks for external dependencies.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import probes
from app.core.probes import check_database, check_email_provider, check_openrouter

pytestmark = pytest.mark.anyio


def _session_returning(execute):
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute = execute
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestDatabaseProbe:
    """Tests for database readiness probe."""

    async def test_check_database_success(self):
        """
        Arrange: Mock async_session_maker to return working session
        Act: Call check_database()
        Assert: Returns True
        """
        # Arrange
        mock_session = _session_returning(AsyncMock(return_value=MagicMock()))

        with patch("app.core.probes.async_session_maker", return_value=mock_session):
            # Act
            result = await check_database()

        # Assert
        assert result is True
        mock_session.execute.assert_awaited_once()

    async def test_check_database_connection_error(self):
        with patch("app.core.probes.async_session_maker", side_effect=Exception("Connection failed")):
            assert await check_database() is False

    async def test_check_database_timeout(self):
        """
        Arrange: Session whose query hangs past the timeout
        Act: Call check_database() with a short timeout
        Assert: Returns False
        """
        async def slow_query(*args, **kwargs):
            await asyncio.sleep(10)

        mock_session = _session_returning(slow_query)

        with patch("app.core.probes.async_session_maker", return_value=mock_session):
            result = await check_database(timeout_seconds=0.05)

        assert result is False


class TestProviderProbes:
    """Tests for the Resend and OpenRouter probes."""

    async def test_unconfigured_providers_are_unhealthy(self, monkeypatch):
        monkeypatch.setattr(probes.settings, "resend_api_key", None)
        monkeypatch.setattr(probes.settings, "openrouter_api_key", None)

        assert await check_email_provider() is False
        assert await check_openrouter() is False

    @pytest.mark.parametrize("status_code, healthy", [(200, True), (405, True), (401, False), (503, False)])
    async def test_status_codes(self, monkeypatch, status_code, healthy):
        """
        Arrange: Key configured, HEAD answered with the given status
        Act: Call check_email_provider()
        Assert: 2xx and 405 count as reachable
        """
        monkeypatch.setattr(probes.settings, "resend_api_key", "re_test_key")
        mock_client = AsyncMock()
        mock_client.head = AsyncMock(return_value=MagicMock(status_code=status_code))
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=None)

        with patch("app.core.probes.httpx.AsyncClient", return_value=mock_client):
            result = await check_email_provider()

        assert result is healthy
        url = mock_client.head.await_args.args[0]
        assert url.endswith("/domains")

    async def test_network_error(self, monkeypatch):
        monkeypatch.setattr(probes.settings, "openrouter_api_key", "sk-or-test")
        mock_client = AsyncMock()
        mock_client.head = AsyncMock(side_effect=httpx.ConnectError("refused"))
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=None)

        with patch("app.core.probes.httpx.AsyncClient", return_value=mock_client):
            assert await check_openrouter() is False
