"""Tests for the synced service store."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from hotify.core.client import SignedApiClient
from hotify.core.exceptions import TransportFailure, UnexpectedStatus
from hotify.core.store import SyncedStore
from hotify.models.service import ProxyConfig, Service, ServiceConfig

from .conftest import SECRET, service_json


def names(store: SyncedStore):
    return [service.config.name for service in store.current_snapshot()]


def make_service(name: str) -> Service:
    return Service(config=ServiceConfig(name=name))


class TestRefresh:
    """Tests for full re-synchronization."""

    def test_starts_empty(self, store):
        assert store.current_snapshot() == ()
        assert store.collection == ()

    @pytest.mark.asyncio
    async def test_sorts_by_name(self, fake_server, store):
        fake_server.add(service_json("b"), service_json("a"))

        await store.refresh()

        assert names(store) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_replaces_wholesale(self, fake_server, store):
        fake_server.add(service_json("a"), service_json("b"))
        await store.refresh()
        first = store.current_snapshot()

        del fake_server.services["a"]
        fake_server.add(service_json("c"))
        await store.refresh()

        assert names(store) == ["b", "c"]
        # The previous snapshot is never modified in place
        assert [s.config.name for s in first] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_failure_keeps_snapshot(self, fake_server, store):
        fake_server.add(service_json("a"))
        await store.refresh()
        before = store.current_snapshot()

        fake_server.override("GET", "/api/services", 503, "unavailable")
        with pytest.raises(UnexpectedStatus):
            await store.refresh()

        assert store.current_snapshot() is before

    @pytest.mark.asyncio
    async def test_get(self, fake_server, store):
        fake_server.add(service_json("a"), service_json("b"))
        await store.refresh()

        assert store.get("b").config.name == "b"
        assert store.get("missing") is None

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_never_mix(self):
        """Test that overlapping refreshes leave one complete response"""
        first = [make_service("b1"), make_service("a1")]
        second = [make_service("a2"), make_service("c2"), make_service("b2")]

        # The first request answers last
        responses = iter([(first, 0.05), (second, 0.01)])

        async def services():
            result, delay = next(responses)
            await asyncio.sleep(delay)
            return result

        client = SignedApiClient("http://unused", SECRET)
        client.services = services
        store = SyncedStore(client)

        await asyncio.gather(store.refresh(), store.refresh())

        assert names(store) == ["a1", "b1"]


class TestMutations:
    """Tests for mutations and the resync they trigger."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", [
        "start_service", "stop_service", "update_service", "restart_service", "delete_service",
    ])
    async def test_success_triggers_one_resync(self, fake_server, store, operation):
        fake_server.add(service_json("web"), service_json("api"))

        await getattr(store, operation)("web")

        assert len(fake_server.requests_to("GET", "/api/services")) == 1
        assert names(store) == sorted(fake_server.services)

    @pytest.mark.asyncio
    async def test_failure_does_not_resync(self, fake_server, store):
        fake_server.add(service_json("web"))
        await store.refresh()
        before = store.current_snapshot()
        listener = MagicMock(return_value=None)
        store.client.subscribe(listener)

        with pytest.raises(UnexpectedStatus):
            await store.start_service("missing")

        assert len(fake_server.requests_to("GET", "/api/services")) == 1
        assert store.current_snapshot() is before
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_stop_failure_surfaces_status_and_body(self, fake_server, store):
        fake_server.add(service_json("web", status=0))
        await store.refresh()
        before = json.dumps([s.config.to_dict() for s in store.current_snapshot()])

        fake_server.override("GET", "/api/services/web/stop", 500, "boom")
        with pytest.raises(UnexpectedStatus) as exc_info:
            await store.stop_service("web")

        assert exc_info.value.status == 500
        assert exc_info.value.body == "boom"
        assert json.dumps([s.config.to_dict() for s in store.current_snapshot()]) == before

    @pytest.mark.asyncio
    async def test_create_round_trip(self, fake_server, store):
        config = ServiceConfig(
            name="web",
            repo="r",
            exec="run",
            build="make",
            restart=True,
            max_restarts=3,
            secret="s",
            proxy=ProxyConfig(match="/", upstream="http://x"),
        )

        await store.create_service(config)

        assert store.get("web").config == config

    @pytest.mark.asyncio
    async def test_delete_removes_entry(self, fake_server, store):
        fake_server.add(service_json("web"), service_json("api"))
        await store.refresh()

        await store.delete_service("web")

        assert names(store) == ["api"]

    @pytest.mark.asyncio
    async def test_concurrent_mutations_each_resync(self, fake_server, store):
        fake_server.add(service_json("a"), service_json("b"))

        await asyncio.gather(store.start_service("a"), store.stop_service("b"))

        assert len(fake_server.requests_to("GET", "/api/services")) == 2
        assert names(store) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_transport_failure_propagates(self):
        client = SignedApiClient("http://unused", SECRET)
        client.services = AsyncMock()
        store = SyncedStore(client)

        client._fetch = AsyncMock(side_effect=TransportFailure("down"))
        with pytest.raises(TransportFailure):
            await store.restart_service("web")

        client.services.assert_not_called()

    @pytest.mark.asyncio
    async def test_reads_delegate(self, fake_server, store):
        fake_server.add(service_json("web"))

        service = await store.service("web")
        config = await store.get_config()

        assert service.name == "web"
        assert config.services_path == "/srv/hotify"
        assert store.current_snapshot() == ()


class TestSubscribers:
    """Tests for snapshot subscribers."""

    @pytest.mark.asyncio
    async def test_notified_with_new_snapshot(self, fake_server, store):
        fake_server.add(service_json("b"), service_json("a"))
        listener = MagicMock(return_value=None)
        store.subscribe(listener)

        await store.refresh()

        listener.assert_called_once_with(store.current_snapshot())

    @pytest.mark.asyncio
    async def test_async_subscriber(self, fake_server, store):
        listener = AsyncMock()
        store.subscribe(listener)

        await store.refresh()

        listener.assert_awaited_once_with(())

    @pytest.mark.asyncio
    async def test_unsubscribe(self, fake_server, store):
        listener = MagicMock(return_value=None)
        unsubscribe = store.subscribe(listener)
        unsubscribe()

        await store.refresh()

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_notified_on_failure(self, fake_server, store):
        listener = MagicMock(return_value=None)
        store.subscribe(listener)
        fake_server.override("GET", "/api/services", 500, "boom")

        with pytest.raises(UnexpectedStatus):
            await store.refresh()

        listener.assert_not_called()


class TestSetClient:
    """Tests for swapping the client."""

    @pytest.mark.asyncio
    async def test_resyncs_through_new_client_only(self, fake_server, store):
        fake_server.add(service_json("web"))
        old_client = store.client

        async with SignedApiClient(fake_server.address, SECRET) as new_client:
            store.set_client(new_client)

            await old_client.start_service("web")
            assert fake_server.requests_to("GET", "/api/services") == []

            await new_client.stop_service("web")
            assert len(fake_server.requests_to("GET", "/api/services")) == 1
            assert names(store) == ["web"]

    @pytest.mark.asyncio
    async def test_keeps_snapshot(self, fake_server, store):
        fake_server.add(service_json("web"))
        await store.refresh()
        before = store.current_snapshot()

        store.set_client(SignedApiClient(fake_server.address, "rotated"))

        assert store.current_snapshot() is before
