"""Shared fixtures: an in-process fake hotify server and clients bound to it."""

import asyncio
import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from hotify.core.client import SignedApiClient
from hotify.core.store import SyncedStore

SECRET = "test-secret"


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: Dict[str, str]
    body: bytes


def service_json(name: str, status: int = 1, restarts: int = 0, logs: Optional[List[str]] = None) -> dict:
    """Build a service the way the server serializes it."""
    return {
        "config": {
            "name": name,
            "repo": f"https://example.com/{name}.git",
            "exec": "./run",
            "build": "make",
            "restart": False,
            "maxRestarts": 0,
            "secret": "",
            "proxy": {"match": "", "upstream": ""},
        },
        "path": f"/srv/hotify/{name}",
        "status": status,
        "restarts": restarts,
        "logs": logs or [],
    }


class FakeHotifyServer:
    """Minimal stand-in for the hotify API.

    Verifies request signatures like the real server, keeps services in
    memory and records every request. ``overrides`` forces a raw response for
    a (method, path) pair, ``delay`` slows every response down.
    """

    def __init__(self, secret: str = SECRET):
        self.secret = secret
        self.address = ""
        self.services: Dict[str, dict] = {}
        self.requests: List[RecordedRequest] = []
        self.overrides: Dict[Tuple[str, str], Tuple[int, str]] = {}
        self.delay = 0.0
        self.config = {
            "services": {},
            "address": ":1234",
            "servicesPath": "/srv/hotify",
            "secret": secret,
        }

    def add(self, *services: dict):
        for service in services:
            self.services[service["config"]["name"]] = service

    def override(self, method: str, path: str, status: int, text: str):
        self.overrides[(method, path)] = (status, text)

    def requests_to(self, method: str, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.path == path]

    def _verify(self, body: bytes, header: Optional[str]) -> bool:
        expected = "sha256=" + hmac.new(self.secret.encode(), body, hashlib.sha256).hexdigest()
        return header == expected

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.read()
        path = request.raw_path
        headers = {key.lower(): value for key, value in request.headers.items()}
        self.requests.append(RecordedRequest(request.method, path, headers, body))

        if self.delay:
            await asyncio.sleep(self.delay)

        if (request.method, path) in self.overrides:
            status, text = self.overrides[(request.method, path)]
            return web.Response(status=status, text=text)

        if not self._verify(body, request.headers.get("X-Signature-256")):
            return web.json_response(None, status=403)

        parts = path.strip("/").split("/")
        if parts[:1] != ["api"]:
            return web.json_response(None, status=404)

        if parts == ["api", "config"] and request.method == "GET":
            return web.json_response(self.config)

        if parts == ["api", "services"]:
            if request.method == "GET":
                return web.json_response(list(self.services.values()))
            if request.method == "POST":
                config = json.loads(body)
                if config["name"] in self.services:
                    return web.json_response(None, status=409)
                self.services[config["name"]] = {
                    "config": config,
                    "path": f"/srv/hotify/{config['name']}",
                    "status": 1,
                    "restarts": 0,
                    "logs": [],
                }
                return web.json_response(None, status=201)

        if len(parts) >= 3 and parts[1] == "services":
            service = self.services.get(parts[2])
            if service is None:
                return web.json_response(None, status=404)

            if len(parts) == 3 and request.method == "GET":
                return web.json_response(service)
            if len(parts) == 3 and request.method == "DELETE":
                del self.services[parts[2]]
                return web.json_response(None)
            if len(parts) == 4 and request.method == "GET":
                action = parts[3]
                if action in ("start", "restart", "update"):
                    service["status"] = 0
                elif action == "stop":
                    service["status"] = 1
                else:
                    return web.json_response(None, status=404)
                return web.json_response(None)

        return web.json_response(None, status=405)


@pytest_asyncio.fixture
async def fake_server():
    fake = FakeHotifyServer()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.handle)

    server = TestServer(app)
    await server.start_server()
    fake.address = f"http://{server.host}:{server.port}"
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def client(fake_server):
    api = SignedApiClient(fake_server.address, fake_server.secret)
    yield api
    await api.close()


@pytest.fixture
def store(client):
    return SyncedStore(client)
