"""
esgate — Application Lifecycle Tests
====================================

What:  Startup/shutdown behavior of the lifespan and the `seed` command.
How:   The lifespan context is entered directly with a pre-built EngineClient,
       since ASGITransport does not emit lifespan events.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from esgate import __main__ as cli
from esgate.exceptions import ConnectivityError, EngineReportedError
from esgate.main import create_app
from esgate.services.engine_client import EngineClient


class TestLifespan:

    @pytest.mark.asyncio
    async def test_startup_creates_index(self, engine_client, fake_engine):
        """Startup should create the index and keep the injected client."""
        app = create_app(engine_client=engine_client)

        async with app.router.lifespan_context(app):
            assert "employee" in fake_engine.indices
            assert app.state.engine_client is engine_client

    @pytest.mark.asyncio
    async def test_startup_tolerates_existing_index(self, engine_client, fake_engine):
        """Startup should leave an existing index and its documents alone."""
        fake_engine.indices["employee"] = {"1": {"id": 1}}
        app = create_app(engine_client=engine_client)

        async with app.router.lifespan_context(app):
            pass
        assert fake_engine.indices["employee"] == {"1": {"id": 1}}

    @pytest.mark.asyncio
    async def test_startup_aborts_when_engine_unreachable(self, connection_config):
        """An unreachable engine should make startup raise."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = EngineClient(connection_config, transport=httpx.MockTransport(handler))
        app = create_app(engine_client=client)

        with pytest.raises(ConnectivityError):
            async with app.router.lifespan_context(app):
                pass

    @pytest.mark.asyncio
    async def test_startup_aborts_when_index_creation_fails(self, connection_config):
        """A rejected index creation should make startup raise."""
        def handler(request):
            if request.method == "PUT":
                return httpx.Response(403, json={"error": {"type": "security_exception"}})
            return httpx.Response(200, json={"cluster_name": "fake"})

        client = EngineClient(connection_config, transport=httpx.MockTransport(handler))
        app = create_app(engine_client=client)

        with pytest.raises(EngineReportedError):
            async with app.router.lifespan_context(app):
                pass


class TestSeedCommand:

    def test_seed_success_exits_zero(self):
        """A successful seed run should exit 0 with the parsed range."""
        with patch.object(cli, "seed", AsyncMock(return_value=5)) as mock_seed:
            assert cli.main(["seed", "--start", "1", "--stop", "6"]) == 0
        mock_seed.assert_awaited_once_with(1, 6)

    def test_seed_failure_exits_one(self):
        """An engine error during seeding should exit 1."""
        failing = AsyncMock(side_effect=ConnectivityError(message="down", action="check health"))
        with patch.object(cli, "seed", failing):
            assert cli.main(["seed", "--stop", "3"]) == 1

    def test_default_command_serves(self):
        """With no subcommand the CLI should start the server."""
        with patch.object(cli, "serve") as mock_serve:
            assert cli.main([]) == 0
        mock_serve.assert_called_once_with()
