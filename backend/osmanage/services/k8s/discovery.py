"""
API discovery.

Builds the apiVersion/kind -> endpoint map that the untyped client uses to
address arbitrary resources. Discovery is done once per connection and
kept in memory only.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Tuple

from kubernetes.client import ApiClient
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from ...core.logging import get_logger
from ...exceptions import ResourceResolutionError
from ...schemas import ResourceEndpoint

logger = get_logger(__name__)

_EndpointKey = Tuple[str, str]


def _get_json(api_client: ApiClient, path: str) -> Dict[str, Any]:
    return api_client.call_api(
        path,
        "GET",
        header_params={"Accept": "application/json"},
        response_type="object",
        auth_settings=["BearerToken"],
        _return_http_data_only=True,
    )


def _collect(resource_list: Dict[str, Any], group_version: str, into: Dict[_EndpointKey, ResourceEndpoint]) -> None:
    for res in resource_list.get("resources") or []:
        name = res.get("name", "")
        # subresources like deployments/scale share the kind of their parent
        if "/" in name:
            continue
        key = (group_version, res["kind"])
        into.setdefault(
            key,
            ResourceEndpoint(
                group_version=group_version,
                kind=res["kind"],
                plural=name,
                namespaced=bool(res.get("namespaced")),
            ),
        )


def discover_endpoints(api_client: ApiClient) -> Dict[_EndpointKey, ResourceEndpoint]:
    endpoints: Dict[_EndpointKey, ResourceEndpoint] = {}

    core = _get_json(api_client, "/api")
    for version in core.get("versions") or []:
        _collect(_get_json(api_client, f"/api/{version}"), version, endpoints)

    groups = _get_json(api_client, "/apis")
    for group in groups.get("groups") or []:
        for version in group.get("versions") or []:
            gv = version["groupVersion"]
            try:
                _collect(_get_json(api_client, f"/apis/{gv}"), gv, endpoints)
            except ApiException as exc:
                # aggregated APIs (metrics etc.) may be unavailable
                logger.warning("kubernetes.discovery_group_error", group_version=gv, status=exc.status, error=exc.reason)

    logger.debug("kubernetes.discovery_done", endpoints=len(endpoints))
    return endpoints


class KindResolver:
    """Maps apiVersion/kind to a ResourceEndpoint, discovering on first use."""

    def __init__(self, api_client: ApiClient, endpoints: Optional[Dict[_EndpointKey, ResourceEndpoint]] = None):
        self._api_client = api_client
        self._endpoints = endpoints
        self._lock = threading.Lock()

    def _ensure_discovered(self) -> Dict[_EndpointKey, ResourceEndpoint]:
        if self._endpoints is None:
            with self._lock:
                if self._endpoints is None:
                    try:
                        self._endpoints = discover_endpoints(self._api_client)
                    except (ApiException, HTTPError) as exc:
                        logger.error("kubernetes.discovery_failed", error=str(exc))
                        raise ResourceResolutionError(
                            f"API discovery failed: {exc}",
                            details={"status": getattr(exc, "status", None)},
                        ) from exc
        return self._endpoints

    def resolve(self, api_version: str, kind: str) -> ResourceEndpoint:
        endpoint = self._ensure_discovered().get((api_version, kind))
        if endpoint is None:
            raise ResourceResolutionError(
                f"resource {kind} in {api_version} is not served by the cluster",
                details={"apiVersion": api_version, "kind": kind},
            )
        return endpoint
