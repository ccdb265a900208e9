"""Chroma health probe and provisioning over a mocked HTTP transport."""

import httpx
import pytest

from vaultsync.errors import ProvisioningError
from vaultsync.models import HealthStatus
from vaultsync.sync import ChromaHealthProbe

BASE = "http://chroma.test"
TENANT = "/api/v2/tenants/t1"
DATABASE = TENANT + "/databases/d1"


def make_probe(routes: dict, calls: list | None = None) -> ChromaHealthProbe:
    """routes: (method, path) -> status code or callable(request) -> Response"""

    def handler(request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        if calls is not None:
            calls.append(key)
        route = routes.get(key, 404)
        if callable(route):
            return route(request)
        return httpx.Response(route, json={})

    client = httpx.Client(base_url=BASE, transport=httpx.MockTransport(handler))
    return ChromaHealthProbe(
        base_url=BASE,
        tenant="t1",
        database="d1",
        collection_name="chunks",
        client=client,
    )


def test_healthy_when_collection_exists():
    probe = make_probe({
        ("GET", "/api/v2/heartbeat"): 200,
        ("GET", DATABASE + "/collections/chunks"): 200,
    })
    assert probe.check_health() == HealthStatus.HEALTHY


def test_missing_collection_is_still_healthy():
    probe = make_probe({("GET", "/api/v2/heartbeat"): 200})
    assert probe.check_health() == HealthStatus.HEALTHY


def test_failed_heartbeat_is_unhealthy():
    probe = make_probe({("GET", "/api/v2/heartbeat"): 503})
    assert probe.check_health() == HealthStatus.UNHEALTHY


def test_server_error_on_collection_is_unhealthy():
    probe = make_probe({
        ("GET", "/api/v2/heartbeat"): 200,
        ("GET", DATABASE + "/collections/chunks"): 500,
    })
    assert probe.check_health() == HealthStatus.UNHEALTHY


def test_connection_error_is_unhealthy():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    probe = make_probe({("GET", "/api/v2/heartbeat"): refuse})
    assert probe.check_health() == HealthStatus.UNHEALTHY


def test_existing_tenant_and_database_are_not_recreated():
    calls = []
    probe = make_probe({("GET", TENANT): 200, ("GET", DATABASE): 200}, calls)

    probe.ensure_tenant_and_database()

    assert calls == [("GET", TENANT), ("GET", DATABASE)]


def test_missing_tenant_and_database_are_created():
    calls = []
    bodies = []

    def created(request):
        bodies.append(request.read())
        return httpx.Response(201, json={})

    probe = make_probe({
        ("POST", "/api/v2/tenants"): created,
        ("POST", TENANT + "/databases"): created,
    }, calls)

    probe.ensure_tenant_and_database()

    assert ("POST", "/api/v2/tenants") in calls
    assert ("POST", TENANT + "/databases") in calls
    assert b'"t1"' in bodies[0]
    assert b'"d1"' in bodies[1]


def test_failed_creation_raises_provisioning_error():
    probe = make_probe({("POST", "/api/v2/tenants"): 500})

    with pytest.raises(ProvisioningError, match="create tenant 't1'"):
        probe.ensure_tenant_and_database()


def test_unexpected_check_status_raises():
    probe = make_probe({("GET", TENANT): 200, ("GET", DATABASE): 403})

    with pytest.raises(ProvisioningError, match="check database 'd1'"):
        probe.ensure_tenant_and_database()


def test_transport_error_is_wrapped():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    probe = make_probe({("GET", TENANT): refuse})

    with pytest.raises(ProvisioningError) as info:
        probe.ensure_tenant()
    assert isinstance(info.value.__cause__, httpx.ConnectError)
