"""
Cluster connection management.

A ClusterConnection wraps one ApiClient and hands out typed API objects,
the untyped client and the kind resolver. Handles are built on first use
and reused for the lifetime of the connection.
"""

from __future__ import annotations

import os
import threading
from typing import Any, Dict, Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from ...config import Settings, get_settings
from ...core.logging import get_logger
from ...exceptions import ConnectionConfigError
from .discovery import KindResolver
from .dynamic_client import UntypedClient

logger = get_logger(__name__)

DEFAULT_KUBECONFIG = os.path.join("~", ".kube", "config")


def _client_from_kubeconfig(path: str, context: Optional[str] = None) -> client.ApiClient:
    expanded = os.path.expanduser(path)
    try:
        return config.new_client_from_config(config_file=expanded, context=context)
    except (ConfigException, OSError) as exc:
        raise ConnectionConfigError(
            f"failed to load kubeconfig {expanded}: {exc}",
            details={"path": expanded},
        ) from exc


def _client_in_cluster() -> client.ApiClient:
    configuration = client.Configuration()
    config.load_incluster_config(client_configuration=configuration)
    return client.ApiClient(configuration)


def create_api_client(
    kubeconfig_path: Optional[str] = None,
    *,
    context: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> client.ApiClient:
    """
    Build an ApiClient from the first configuration source that works.

    Order: explicit path, ``settings.kube_config_path``, in-cluster service
    account, ``~/.kube/config``. An explicitly named kubeconfig that cannot
    be loaded is an error; no fallback is tried.
    """
    settings = settings or get_settings()

    explicit = kubeconfig_path or settings.kube_config_path
    if explicit:
        logger.debug("kubernetes.config_source", source="kubeconfig", path=explicit)
        return _client_from_kubeconfig(explicit, context)

    try:
        api_client = _client_in_cluster()
        logger.debug("kubernetes.config_source", source="in_cluster")
        return api_client
    except ConfigException as exc:
        logger.debug("kubernetes.in_cluster_unavailable", error=str(exc))

    logger.debug("kubernetes.config_source", source="kubeconfig", path=DEFAULT_KUBECONFIG)
    return _client_from_kubeconfig(DEFAULT_KUBECONFIG, context)


class ClusterConnection:
    """Lazily built, memoized handles to one cluster."""

    def __init__(self, api_client: client.ApiClient, settings: Optional[Settings] = None):
        self.api_client = api_client
        self.settings = settings or get_settings()
        self._lock = threading.RLock()
        self._handles: Dict[str, Any] = {}

    def _handle(self, name: str, factory) -> Any:
        handle = self._handles.get(name)
        if handle is None:
            with self._lock:
                handle = self._handles.get(name)
                if handle is None:
                    handle = factory()
                    self._handles[name] = handle
        return handle

    @property
    def core_v1(self) -> client.CoreV1Api:
        return self._handle("core_v1", lambda: client.CoreV1Api(self.api_client))

    @property
    def apps_v1(self) -> client.AppsV1Api:
        return self._handle("apps_v1", lambda: client.AppsV1Api(self.api_client))

    @property
    def resolver(self) -> KindResolver:
        return self._handle("resolver", lambda: KindResolver(self.api_client))

    @property
    def dynamic(self) -> UntypedClient:
        return self._handle("dynamic", lambda: UntypedClient(self.api_client, self.resolver))

    def close(self) -> None:
        try:
            self.api_client.close()
        except Exception as exc:  # pragma: no cover
            logger.warning("kubernetes.close_error", error=str(exc))

    def __enter__(self) -> "ClusterConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def connect(
    kubeconfig_path: Optional[str] = None,
    *,
    context: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ClusterConnection:
    settings = settings or get_settings()
    api_client = create_api_client(kubeconfig_path, context=context, settings=settings)
    return ClusterConnection(api_client, settings=settings)
