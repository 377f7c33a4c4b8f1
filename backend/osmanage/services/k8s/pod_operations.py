"""
Instance health: pod readiness snapshots, a one-shot check and a bounded wait.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console

from ...config import Settings
from ...core.logging import get_logger
from ...constants import ICON_NOT_READY, ICON_READY
from ...exceptions import InstanceNotHealthyError, WaitTimeoutError
from ...schemas import HealthSnapshot, PodStatus
from .connection import ClusterConnection
from .polling import Poller, wait_poller
from .progress import ProgressReporter, get_console
from .utils import is_pod_counted, is_pod_ready

logger = get_logger(__name__)


def get_health_snapshot(conn: ClusterConnection, namespace: str) -> HealthSnapshot:
    """List the namespace's pods, skipping completed ones and those being deleted."""
    pods = conn.core_v1.list_namespaced_pod(namespace)

    statuses = []
    for pod in pods.items or []:
        if not is_pod_counted(pod):
            continue
        statuses.append(
            PodStatus(
                name=pod.metadata.name,
                phase=(pod.status.phase if pod.status else None) or "Unknown",
                ready=is_pod_ready(pod),
            )
        )

    return HealthSnapshot(
        namespace=namespace,
        total=len(statuses),
        ready=sum(1 for s in statuses if s.ready),
        pods=tuple(statuses),
    )


def print_health(snapshot: HealthSnapshot, console: Optional[Console] = None) -> None:
    console = console or get_console()
    if snapshot.total == 0:
        console.print(f"No pods found in namespace {snapshot.namespace}")
        return
    for pod in snapshot.pods:
        icon = f"[green]{ICON_READY}[/green]" if pod.ready else f"[red]{ICON_NOT_READY}[/red]"
        console.print(f"{icon} {pod.name:<50} {pod.phase}")
    console.print(f"\nReady: {snapshot.ready}/{snapshot.total} pods")


def check_health(
    conn: ClusterConnection,
    namespace: str,
    *,
    console: Optional[Console] = None,
) -> HealthSnapshot:
    """One-shot health check; raises InstanceNotHealthyError unless every pod is ready."""
    snapshot = get_health_snapshot(conn, namespace)
    print_health(snapshot, console)
    if not snapshot.healthy:
        raise InstanceNotHealthyError(
            f"instance {namespace} is not healthy: {snapshot.ready}/{snapshot.total} pods ready",
            snapshot=snapshot,
            details={"namespace": namespace, "ready": snapshot.ready, "total": snapshot.total},
        )
    logger.info("kubernetes.instance_healthy", namespace=namespace, pods=snapshot.total)
    return snapshot


def wait_for_instance_healthy(
    conn: ClusterConnection,
    namespace: str,
    timeout: Optional[float] = None,
    *,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> HealthSnapshot:
    """
    Block until all counted pods in ``namespace`` are ready.

    An empty namespace never counts as healthy. On timeout the last pod
    table is printed before WaitTimeoutError propagates.
    """
    settings = settings or conn.settings
    console = console or get_console()
    poller = wait_poller(settings, timeout, settings.instance_timeout_seconds, f"instance {namespace}", poller)

    logger.info("kubernetes.wait_instance", namespace=namespace, timeout=poller.timeout)
    with ProgressReporter(f"Waiting for {namespace}", console=console, enabled=settings.show_progress) as progress:
        try:
            snapshot = poller.run(
                lambda: get_health_snapshot(conn, namespace),
                lambda s: s.healthy,
                on_tick=lambda s: progress.update(s.ready, s.total),
            )
        except WaitTimeoutError as exc:
            if exc.last_snapshot is not None:
                print_health(exc.last_snapshot, console)
            raise

    console.print(f"[green]{ICON_READY}[/green] Instance {namespace} is healthy ({snapshot.ready}/{snapshot.total} pods ready)")
    return snapshot
