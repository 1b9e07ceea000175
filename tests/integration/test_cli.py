"""
Integration tests for the command-line entry point.
"""

import pytest
import asyncio
import json
import httpx
from unittest.mock import AsyncMock, patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from ptalts.__main__ import listen, main, query
from shared.config import ClientConfig
from shared.errors import RequestError
from shared.test_helpers import FakeCommerceApi, StreamDataFactory

BASE_URL = "https://api.test/api"
LISTEN_PATH = "/client/listen/client-1"


class TestCli:
    """Integration tests for ``python -m ptalts``."""

    @pytest.fixture
    def config(self):
        """Client configuration."""
        return ClientConfig(api_key="test-key", client_name="cli", base_url=BASE_URL, log_format="console")

    @pytest.mark.asyncio
    async def test_query_stock(self, config):
        """Test a read-only query returns JSON-ready data."""
        api = FakeCommerceApi(BASE_URL)
        api.json("GET", "/stock", {"diamond": 4})

        assert await query(config, "stock", transport=api.transport()) == {"diamond": 4}

    @pytest.mark.asyncio
    async def test_query_balance_uses_wire_names(self, config):
        """Test the balance query prints the service's own field names."""
        api = FakeCommerceApi(BASE_URL)
        api.json("GET", "/balance", {"balance": 7, "user_id": "42"})

        assert await query(config, "balance", transport=api.transport()) == {"balance": 7, "user_id": "42"}

    @pytest.mark.asyncio
    async def test_listen_until_stream_lost(self, config):
        """Test listen runs a session and returns once a stream fails."""
        api = FakeCommerceApi(BASE_URL)
        api.stream("/restock-events")
        order_stream = api.stream(LISTEN_PATH)
        api.add("POST", "/client/status", lambda request: httpx.Response(
            200, json=StreamDataFactory.client_status(status=json.loads(request.content)["status"])
        ))

        task = asyncio.create_task(listen(config, transport=api.transport()))
        while not api.requests_for("GET", LISTEN_PATH):
            await asyncio.sleep(0.01)

        order_stream.push_frame(StreamDataFactory.token(token="abc123"))
        order_stream.fail(httpx.ReadError("connection reset"))
        await asyncio.wait_for(task, timeout=2.0)

        statuses = [json.loads(r.content)["status"] for r in api.requests_for("POST", "/client/status")]
        assert statuses == ["online", "offline"]

    def test_main_prints_query_result(self, capsys):
        """Test main prints the query result and exits 0."""
        with patch('ptalts.__main__.query', new=AsyncMock(return_value={"diamond": 10})):
            exit_code = main(["prices", "--api-key", "test-key"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out) == {"diamond": 10}

    def test_main_reports_client_errors(self, capsys):
        """Test client errors are printed to stderr with exit code 1."""
        failure = RequestError("Failed to fetch balance. Status: 401")

        with patch('ptalts.__main__.query', new=AsyncMock(side_effect=failure)):
            exit_code = main(["balance", "--api-key", "bad-key"])

        assert exit_code == 1
        assert "REQUEST_ERROR: Failed to fetch balance. Status: 401" in capsys.readouterr().err

    def test_main_rejects_unknown_command(self):
        """Test argparse refuses commands outside the supported set."""
        with pytest.raises(SystemExit):
            main(["purchase"])
