"""
Untyped resource apply on top of ApiClient.call_api.

Used for manifests whose kind has no typed client method (or whose kind
we do not want to special-case). Endpoints come from KindResolver.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from kubernetes.client import ApiClient

from ...core.logging import get_logger
from ...schemas import ResourceEndpoint
from .discovery import KindResolver

logger = get_logger(__name__)

APPLY_PATCH_CONTENT_TYPE = "application/apply-patch+yaml"


class UntypedClient:
    """Server-side apply of resources addressed by apiVersion/kind."""

    def __init__(self, api_client: ApiClient, resolver: KindResolver):
        self.api_client = api_client
        self.resolver = resolver

    def resolve(self, api_version: str, kind: str) -> ResourceEndpoint:
        return self.resolver.resolve(api_version, kind)

    def _call(self, path: str, method: str, **kwargs: Any) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        headers.update(kwargs.pop("header_params", {}))
        return self.api_client.call_api(
            path,
            method,
            header_params=headers,
            response_type="object",
            auth_settings=["BearerToken"],
            _return_http_data_only=True,
            **kwargs,
        )

    def apply(
        self,
        endpoint: ResourceEndpoint,
        body: Dict[str, Any],
        *,
        field_manager: str,
        namespace: Optional[str] = None,
        force: bool = True,
    ) -> Dict[str, Any]:
        """Server-side apply ``body``; conflicts with other managers are overridden when ``force``."""
        name = body["metadata"]["name"]
        query = [("fieldManager", field_manager)]
        if force:
            query.append(("force", True))
        logger.debug("kubernetes.apply", kind=endpoint.kind, name=name, namespace=namespace)
        return self._call(
            endpoint.path(name, namespace),
            "PATCH",
            query_params=query,
            header_params={"Content-Type": APPLY_PATCH_CONTENT_TYPE},
            body=body,
        )
