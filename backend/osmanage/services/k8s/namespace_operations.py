"""
Namespace lifecycle: active check, foreground delete and deletion wait.
"""

from __future__ import annotations

from typing import Optional

from kubernetes.client.exceptions import ApiException
from rich.console import Console

from ...config import Settings
from ...core.logging import get_logger
from ...constants import ICON_READY
from ...exceptions import ClusterOperationError
from .connection import ClusterConnection
from .polling import Poller, wait_poller
from .progress import ProgressReporter, get_console

logger = get_logger(__name__)


def namespace_is_active(conn: ClusterConnection, namespace: str) -> bool:
    """True when the namespace exists and its phase is Active; a missing namespace is not an error."""
    try:
        ns = conn.core_v1.read_namespace(namespace)
    except ApiException as exc:
        if exc.status == 404:
            return False
        raise ClusterOperationError(
            f"failed to read namespace {namespace}: {exc.reason}",
            details={"namespace": namespace, "status": exc.status},
        ) from exc
    phase = ns.status.phase if ns.status else None
    return phase == "Active"


def namespace_is_gone(conn: ClusterConnection, namespace: str) -> bool:
    """Deletion probe: only 404 means gone. Other read errors propagate to the poller."""
    try:
        conn.core_v1.read_namespace(namespace)
    except ApiException as exc:
        if exc.status == 404:
            return True
        raise
    return False


def delete_namespace(conn: ClusterConnection, namespace: str) -> None:
    try:
        conn.core_v1.delete_namespace(namespace, propagation_policy="Foreground")
    except ApiException as exc:
        raise ClusterOperationError(
            f"failed to delete namespace {namespace}: {exc.reason}",
            details={"namespace": namespace, "status": exc.status},
        ) from exc
    logger.info("kubernetes.namespace_delete_started", namespace=namespace)


def wait_for_namespace_deletion(
    conn: ClusterConnection,
    namespace: str,
    timeout: Optional[float] = None,
    *,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> None:
    """
    Block until a lookup of ``namespace`` returns not found.

    A namespace may stay Terminating for the whole window while its
    finalizers run; that is polled through, not treated as an error.
    """
    settings = settings or conn.settings
    console = console or get_console()
    poller = wait_poller(settings, timeout, settings.namespace_timeout_seconds, f"namespace {namespace} deletion", poller)

    logger.info("kubernetes.wait_namespace_deletion", namespace=namespace, timeout=poller.timeout)
    with ProgressReporter(f"Deleting namespace {namespace}", console=console, enabled=settings.show_progress) as progress:
        poller.run(
            lambda: namespace_is_gone(conn, namespace),
            lambda gone: gone,
            on_tick=lambda gone: progress.update(int(gone), 1),
        )
    console.print(f"[green]{ICON_READY}[/green] Namespace {namespace} deleted")
