import pytest
from kubernetes.client.exceptions import ApiException

from osmanage.exceptions import ResourceResolutionError
from osmanage.services.k8s.discovery import KindResolver, discover_endpoints

DISCOVERY = {
    "/api": {"versions": ["v1"]},
    "/api/v1": {
        "resources": [
            {"name": "namespaces", "kind": "Namespace", "namespaced": False},
            {"name": "namespaces/status", "kind": "Namespace", "namespaced": False},
            {"name": "secrets", "kind": "Secret", "namespaced": True},
            {"name": "pods/log", "kind": "Pod", "namespaced": True},
        ]
    },
    "/apis": {
        "groups": [
            {"name": "apps", "versions": [{"groupVersion": "apps/v1", "version": "v1"}]},
            {"name": "metrics.k8s.io", "versions": [{"groupVersion": "metrics.k8s.io/v1beta1", "version": "v1beta1"}]},
        ]
    },
    "/apis/apps/v1": {
        "resources": [
            {"name": "deployments", "kind": "Deployment", "namespaced": True},
            {"name": "deployments/scale", "kind": "Scale", "namespaced": True},
        ]
    },
}


class DiscoveryApiClient:
    def __init__(self):
        self.calls = []

    def call_api(self, path, method, **kwargs):
        self.calls.append((method, path))
        if path == "/apis/metrics.k8s.io/v1beta1":
            raise ApiException(status=503, reason="Service Unavailable")
        return DISCOVERY[path]


def test_discover_endpoints_builds_map():
    endpoints = discover_endpoints(DiscoveryApiClient())

    assert set(endpoints) == {("v1", "Namespace"), ("v1", "Secret"), ("apps/v1", "Deployment")}
    ns = endpoints[("v1", "Namespace")]
    assert ns.plural == "namespaces" and not ns.namespaced
    dep = endpoints[("apps/v1", "Deployment")]
    assert dep.namespaced
    assert dep.path("backend", "ns1") == "/apis/apps/v1/namespaces/ns1/deployments/backend"
    assert ns.path("ns1") == "/api/v1/namespaces/ns1"
    assert endpoints[("v1", "Secret")].path("tls", "ns1") == "/api/v1/namespaces/ns1/secrets/tls"


def test_resolver_discovers_once():
    api_client = DiscoveryApiClient()
    resolver = KindResolver(api_client)

    resolver.resolve("v1", "Secret")
    resolver.resolve("apps/v1", "Deployment")
    resolver.resolve("v1", "Namespace")

    assert [c for c in api_client.calls if c[1] == "/api"] == [("GET", "/api")]


def test_resolver_unknown_kind():
    resolver = KindResolver(DiscoveryApiClient())

    with pytest.raises(ResourceResolutionError) as excinfo:
        resolver.resolve("example.com/v1", "Widget")
    assert excinfo.value.details == {"apiVersion": "example.com/v1", "kind": "Widget"}


class FlakyDiscoveryApiClient(DiscoveryApiClient):
    def __init__(self, failures=1):
        super().__init__()
        self.failures = failures

    def call_api(self, path, method, **kwargs):
        if path == "/api" and self.failures:
            self.failures -= 1
            self.calls.append((method, path))
            raise ApiException(status=503, reason="Service Unavailable")
        return super().call_api(path, method, **kwargs)


def test_resolver_wraps_discovery_failure():
    resolver = KindResolver(FlakyDiscoveryApiClient())

    with pytest.raises(ResourceResolutionError) as excinfo:
        resolver.resolve("apps/v1", "Deployment")
    assert isinstance(excinfo.value.__cause__, ApiException)
    assert excinfo.value.details == {"status": 503}


def test_resolver_retries_discovery_after_failure():
    api_client = FlakyDiscoveryApiClient()
    resolver = KindResolver(api_client)

    with pytest.raises(ResourceResolutionError):
        resolver.resolve("apps/v1", "Deployment")
    endpoint = resolver.resolve("apps/v1", "Deployment")

    assert endpoint.plural == "deployments"
    assert [c for c in api_client.calls if c[1] == "/api"] == [("GET", "/api"), ("GET", "/api")]
