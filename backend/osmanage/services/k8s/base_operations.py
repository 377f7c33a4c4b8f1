"""
Cluster-wide checks: node readiness and health.
"""

from __future__ import annotations

from typing import Optional

from kubernetes.client.exceptions import ApiException
from rich.console import Console

from ...core.logging import get_logger
from ...constants import ICON_NOT_READY, ICON_READY
from ...exceptions import ClusterOperationError, ClusterUnhealthyError
from ...schemas import ClusterStatus, NodeCondition, NodeStatus
from .connection import ClusterConnection
from .progress import get_console
from .utils import is_node_ready, node_pressures

logger = get_logger(__name__)


def get_cluster_status(conn: ClusterConnection) -> ClusterStatus:
    """Single read of all nodes; ready counts follow each node's Ready condition."""
    try:
        nodes = conn.core_v1.list_node()
    except ApiException as exc:
        raise ClusterOperationError(f"failed to list nodes: {exc.reason}", details={"status": exc.status}) from exc

    statuses = []
    for node in nodes.items or []:
        ready = is_node_ready(node)
        conditions = [
            NodeCondition(type=c.type, status=c.status, reason=c.reason, message=c.message)
            for c in ((node.status.conditions if node.status else None) or [])
        ]
        statuses.append(
            NodeStatus(
                name=node.metadata.name,
                ready=ready,
                healthy=ready and not node_pressures(node),
                conditions=conditions,
            )
        )

    return ClusterStatus(
        total=len(statuses),
        ready=sum(1 for s in statuses if s.ready),
        nodes=statuses,
    )


def print_cluster_status(status: ClusterStatus, console: Optional[Console] = None) -> None:
    console = console or get_console()
    # first line is parsed by callers
    console.print(status.status_line(), markup=False, highlight=False, soft_wrap=True)
    console.print(f"Total nodes: {status.total}")
    console.print(f"Ready nodes: {status.ready}")
    for node in status.nodes:
        if node.ready:
            suffix = "" if node.healthy else f" ({', '.join(node.pressure)})"
            console.print(f"  [green]{ICON_READY}[/green] {node.name}: Ready{suffix}")
        else:
            console.print(f"  [red]{ICON_NOT_READY}[/red] {node.name}: NotReady")
            for cond in node.conditions:
                if cond.type != "Ready" and cond.status == "True":
                    console.print(f"      - {cond.type}: {cond.status} (Reason: {cond.reason})")


def cluster_status(conn: ClusterConnection, *, console: Optional[Console] = None) -> ClusterStatus:
    """
    Print the node summary and fail if any node is not ready.

    This is a single read; an unready node is reported immediately as
    ClusterUnhealthyError rather than waited for.
    """
    status = get_cluster_status(conn)
    print_cluster_status(status, console)
    logger.info("kubernetes.cluster_status", total=status.total, ready=status.ready)

    if not status.healthy:
        raise ClusterUnhealthyError(
            f"cluster is not healthy: {status.ready}/{status.total} nodes ready",
            status=status,
            details={"total": status.total, "ready": status.ready},
        )
    return status
