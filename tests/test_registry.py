"""Tests for perch.services.registry: discovery-backed registration."""

import logging
from pathlib import Path
from typing import Any

import pytest

from perch.app import App
from perch.config import RegistryConfig
from perch.errors import ConfigurationError, DescriptorError
from perch.services.registry import Registry
from perch.services.types import RouteDescriptor, RouteEntry, Verb


class RecordingServer:
    """Stands in for App; records every registration call in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []

    def get(self, path, *handlers):
        self.calls.append(("GET", path, handlers))

    def post(self, path, *handlers):
        self.calls.append(("POST", path, handlers))

    def put(self, path, *handlers):
        self.calls.append(("PUT", path, handlers))

    def delete(self, path, *handlers):
        self.calls.append(("DELETE", path, handlers))

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


def _handler() -> str:
    return "ok"


class TestConstruction:
    def test_scans_directory(self, services_dir: Path) -> None:
        registry = Registry(RecordingServer(), services_dir)
        assert len(registry.services) == 2
        assert registry.directory == services_dir.resolve()
        assert registry.prefix == ""

    def test_invalid_path(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid services directory"):
            Registry(RecordingServer(), "")

    def test_not_a_directory(self) -> None:
        with pytest.raises(ConfigurationError, match="needs to be a directory"):
            Registry(RecordingServer(), __file__)

    def test_bad_service_fails_construction(self, write_service) -> None:
        directory = write_service("bad.py", 'routes = {"get": [{"path": "/x"}]}\n')
        with pytest.raises(DescriptorError, match="get"):
            Registry(RecordingServer(), directory)

    def test_without_directory(self) -> None:
        registry = Registry(RecordingServer())
        assert registry.services == ()
        assert registry.directory is None
        assert registry.register_all_verbs() == 0

    def test_prefix_from_config(self, services_dir: Path) -> None:
        registry = Registry(RecordingServer(), services_dir, config=RegistryConfig(prefix="/v1"))
        assert registry.prefix == "/v1"

    def test_explicit_prefix_beats_config(self, services_dir: Path) -> None:
        registry = Registry(
            RecordingServer(), services_dir, "/v2", config=RegistryConfig(prefix="/v1")
        )
        assert registry.prefix == "/v2"

    def test_build_is_construction(self, services_dir: Path) -> None:
        registry = Registry.build(RecordingServer(), services_dir, "/api")
        assert isinstance(registry, Registry)
        assert len(registry.services) == 2


class TestRegisterVerb:
    def test_get_and_post_counts(self, services_dir: Path) -> None:
        server = RecordingServer()
        registry = Registry(server, services_dir)

        assert registry.register_verb("get") == 2
        assert registry.register_verb(Verb.POST) == 1

        assert server.count("GET") == 2
        assert server.count("POST") == 1

    def test_discovery_order(self, services_dir: Path) -> None:
        server = RecordingServer()
        Registry(server, services_dir).register_verb("get")
        assert [call[1] for call in server.calls] == ["/users", "/orders"]

    def test_handler_chain_preserved(self, services_dir: Path) -> None:
        server = RecordingServer()
        registry = Registry(server, services_dir)
        registry.register_verb("post")
        (_, path, handlers) = server.calls[0]
        assert path == "/orders"
        assert [h.__name__ for h in handlers] == ["require_json", "create_order"]

    def test_prefix_is_concatenated_verbatim(self, services_dir: Path) -> None:
        server = RecordingServer()
        Registry(server, services_dir, "/api").register_verb("get")
        assert [call[1] for call in server.calls] == ["/api/users", "/api/orders"]

    def test_verbs_without_routes(self, services_dir: Path) -> None:
        server = RecordingServer()
        registry = Registry(server, services_dir)
        assert registry.register_verb("put") == 0
        assert registry.register_verb("delete") == 0
        assert server.calls == []

    def test_calling_twice_duplicates(self, services_dir: Path) -> None:
        server = RecordingServer()
        registry = Registry(server, services_dir)
        registry.register_verb("get")
        registry.register_verb("get")
        assert server.count("GET") == 4

    def test_unknown_verb(self, services_dir: Path) -> None:
        with pytest.raises(ValueError, match="Unsupported verb"):
            Registry(RecordingServer(), services_dir).register_verb("patch")

    def test_named_shortcuts(self, services_dir: Path) -> None:
        server = RecordingServer()
        registry = Registry(server, services_dir)
        assert registry.add_get_routes() == 2
        assert registry.add_post_routes() == 1
        assert registry.add_put_routes() == 0
        assert registry.add_delete_routes() == 0

    def test_against_real_app(self, services_dir: Path) -> None:
        app = App()
        Registry(app, services_dir).register_verb("get")
        assert [r.path for r in app.routes] == ["/users", "/orders"]


class TestRegisterAllVerbs:
    def test_verb_order(self, write_service) -> None:
        directory = write_service(
            "svc.py",
            """
            def h():
                return "ok"

            entry = [{"path": "/x", "handlers": [h]}]
            routes = {"put": entry, "delete": entry, "post": entry, "get": entry}
            """,
        )
        server = RecordingServer()
        assert Registry(server, directory).register_all_verbs() == 4
        assert [call[0] for call in server.calls] == ["GET", "POST", "DELETE", "PUT"]


class TestRawRegistration:
    def test_register_raw_one_verb(self, services_dir: Path) -> None:
        server = RecordingServer()
        registry = Registry(server, services_dir, "/raw")
        raw = {
            "get": [{"path": "/ping", "handlers": [_handler]}],
            "post": [{"path": "/ping", "handlers": [_handler]}],
        }
        assert registry.register_raw(raw, "post") == 1
        assert server.calls == [("POST", "/raw/ping", (_handler,))]

    def test_register_all_raw_verbs(self, services_dir: Path) -> None:
        server = RecordingServer()
        registry = Registry(server, services_dir)
        before = registry.services
        raw = {
            "get": [{"path": "/ping", "handlers": [_handler]}],
            "post": [{"path": "/ping", "handlers": [_handler]}],
        }

        assert registry.register_all_raw_verbs(raw) == 2

        assert [(c[0], c[1]) for c in server.calls] == [("GET", "/ping"), ("POST", "/ping")]
        assert registry.services is before
        assert len(registry.services) == 2

    def test_raw_without_directory(self) -> None:
        server = RecordingServer()
        descriptor = RouteDescriptor(routes={Verb.DELETE: (RouteEntry("/x", (_handler,)),)})
        assert Registry(server).register_all_raw_verbs(descriptor) == 1
        assert server.calls[0][0] == "DELETE"

    def test_raw_is_validated(self) -> None:
        server = RecordingServer()
        with pytest.raises(DescriptorError, match="get"):
            Registry(server).register_raw({"get": [{"handlers": [_handler]}]}, "get")
        assert server.calls == []


class TestLogging:
    def test_explicit_logger(self, services_dir: Path, caplog) -> None:
        logger = logging.getLogger("tests.registry")
        with caplog.at_level(logging.DEBUG, logger="tests.registry"):
            registry = Registry(RecordingServer(), services_dir, logger=logger)
            registry.register_verb("get")

        assert registry.logger is logger
        messages = [r.getMessage() for r in caplog.records if r.name == "tests.registry"]
        assert "adding get routes for: a_users.py" in messages
        assert "parsing routes for service: b_orders.py" in messages

    def test_default_logger_is_left_alone(self) -> None:
        shared = logging.getLogger("perch.registry")
        before = shared.level
        registry = Registry(RecordingServer())
        assert registry.logger is shared
        assert shared.level == before

    def test_levels_are_per_registry(self) -> None:
        shared = logging.getLogger("perch.registry")
        before = shared.level
        verbose = Registry(RecordingServer(), config=RegistryConfig(log_level="debug"))
        quiet = Registry(RecordingServer(), config=RegistryConfig(log_level="warning"))

        assert verbose.logger is not quiet.logger
        assert verbose.logger.isEnabledFor(logging.DEBUG)
        assert not quiet.logger.isEnabledFor(logging.INFO)
        assert verbose.logger.name.startswith("perch.registry.")
        assert shared.level == before

    def test_child_logger_propagates(self, services_dir: Path, caplog) -> None:
        with caplog.at_level(logging.DEBUG):
            registry = Registry(
                RecordingServer(), services_dir, config=RegistryConfig(log_level="debug")
            )
            registry.register_verb("get")
        messages = [r.getMessage() for r in caplog.records if r.name == registry.logger.name]
        assert "adding get routes for: a_users.py" in messages


def test_repr(services_dir: Path) -> None:
    text = repr(Registry(RecordingServer(), services_dir, "/api"))
    assert "prefix='/api'" in text
    assert "services=2" in text
