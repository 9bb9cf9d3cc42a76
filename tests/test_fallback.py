"""Integration tests: discovered services behind the invalid-call fallback."""

from pathlib import Path

import httpx
import pytest

from perch.app import App
from perch.helpers import INVALID_API_CALL_PAYLOAD, log_errors, send_error_to_client
from perch.services.fallback import FALLBACK_PATH, install_fallback
from perch.services.registry import Registry
from perch.testing import TestClient


def _wired_app(services_dir: Path, prefix: str = "") -> App:
    app = App()
    app.error(log_errors)
    app.error(send_error_to_client)
    registry = Registry(app, services_dir, prefix)
    registry.register_all_verbs()
    registry.install_fallback()
    return app


class TestInstallFallback:
    def test_one_route_per_verb(self, app: App) -> None:
        assert install_fallback(app) == 4
        assert [r.path for r in app.routes] == [FALLBACK_PATH] * 4
        assert [next(iter(r.methods)) for r in app.routes] == ["GET", "POST", "DELETE", "PUT"]

    def test_selected_verbs(self, app: App) -> None:
        assert install_fallback(app, ["get"]) == 1
        assert app.routes[0].methods == frozenset({"GET"})

    def test_registered_after_services(self, services_dir: Path) -> None:
        app = _wired_app(services_dir)
        assert [r.path for r in app.routes][-4:] == [FALLBACK_PATH] * 4
        assert [r.path for r in app.routes][:3] == ["/users", "/orders", "/orders"]


class TestDispatch:
    @pytest.mark.asyncio
    async def test_registered_get(self, services_dir: Path) -> None:
        async with TestClient(_wired_app(services_dir)) as client:
            response = await client.get("/users")
        assert response.status == 200
        assert response.json_body() == {"users": ["ada", "grace"]}

    @pytest.mark.asyncio
    async def test_wrapped_service_get(self, services_dir: Path) -> None:
        async with TestClient(_wired_app(services_dir)) as client:
            response = await client.get("/orders")
        assert response.json_body() == {"orders": []}

    @pytest.mark.asyncio
    async def test_post_chain(self, services_dir: Path) -> None:
        async with TestClient(_wired_app(services_dir)) as client:
            response = await client.post("/orders", json={"sku": "perch-1"})
        assert response.status == 201
        assert response.json_body() == {"created": {"sku": "perch-1"}}

    @pytest.mark.asyncio
    async def test_post_chain_stops_early(self, services_dir: Path) -> None:
        async with TestClient(_wired_app(services_dir)) as client:
            response = await client.post("/orders", body=b"sku=1")
        assert response.status == 415
        assert response.json_body() == {"message": "JSON body required"}

    @pytest.mark.asyncio
    async def test_unregistered_path(self, services_dir: Path) -> None:
        async with TestClient(_wired_app(services_dir)) as client:
            response = await client.get("/nothing/here")
        assert response.status == 400
        assert response.json_body() == INVALID_API_CALL_PAYLOAD

    @pytest.mark.asyncio
    async def test_unregistered_verb_on_known_path(self, services_dir: Path) -> None:
        async with TestClient(_wired_app(services_dir)) as client:
            response = await client.delete("/users")
        assert response.status == 400
        assert response.json_body() == INVALID_API_CALL_PAYLOAD

    @pytest.mark.asyncio
    async def test_root_path(self, services_dir: Path) -> None:
        async with TestClient(_wired_app(services_dir)) as client:
            response = await client.put("/")
        assert response.status == 400

    @pytest.mark.asyncio
    async def test_prefixed_routes(self, services_dir: Path) -> None:
        async with TestClient(_wired_app(services_dir, "/api")) as client:
            hit = await client.get("/api/users")
            miss = await client.get("/users")
        assert hit.status == 200
        assert miss.status == 400

    @pytest.mark.asyncio
    async def test_without_fallback_is_404(self, services_dir: Path) -> None:
        app = App()
        Registry(app, services_dir).register_all_verbs()
        async with TestClient(app) as client:
            response = await client.get("/nothing")
        assert response.status == 404

    @pytest.mark.asyncio
    async def test_install_wires_everything(self, services_dir: Path) -> None:
        app = App()
        assert Registry.build(app, services_dir).install() == 3
        async with TestClient(app) as client:
            assert (await client.get("/users")).status == 200
            assert (await client.get("/missing")).status == 400


class TestOverHTTP:
    @pytest.mark.asyncio
    async def test_httpx_round_trip(self, services_dir: Path) -> None:
        transport = httpx.ASGITransport(app=_wired_app(services_dir))
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            users = await client.get("/users")
            created = await client.post("/orders", json={"sku": "a"})
            missing = await client.get("/nope")

        assert users.status_code == 200
        assert users.json() == {"users": ["ada", "grace"]}
        assert created.status_code == 201
        assert missing.status_code == 400
        assert missing.json() == INVALID_API_CALL_PAYLOAD
