"""
Instance lifecycle workflows: Start, Stop, Update.

Each workflow is a short linear sequence of applies and bounded waits
against one instance directory.
"""

from __future__ import annotations

import os
from typing import Optional

from rich.console import Console

from ...config import Settings
from ...core.logging import get_logger
from ...constants import NAMESPACE_YAML, STACK_DIR_NAME
from ...exceptions import OsmanageError
from ...schemas import OperationResult
from .config_operations import save_tls_secret, tls_secret_path
from .connection import ClusterConnection
from .manifest_operations import apply_directory, apply_manifest
from .namespace_operations import delete_namespace, namespace_is_active, wait_for_namespace_deletion
from .pod_operations import check_health, wait_for_instance_healthy
from .polling import Poller
from .utils import extract_namespace

logger = get_logger(__name__)


def start(
    conn: ClusterConnection,
    instance_dir: str | os.PathLike,
    *,
    skip_ready_check: bool = False,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> OperationResult:
    """
    Start an instance.

    Order: namespace manifest, saved TLS secret (if any), stack directory,
    then the instance health wait unless ``skip_ready_check``.
    """
    settings = settings or conn.settings
    instance_dir = os.fspath(instance_dir)

    namespace = apply_manifest(conn, os.path.join(instance_dir, NAMESPACE_YAML), settings=settings)
    namespace = namespace or extract_namespace(instance_dir)
    logger.info("kubernetes.instance_namespace_applied", namespace=namespace)

    secret_path = tls_secret_path(instance_dir)
    if os.path.isfile(secret_path):
        logger.info("kubernetes.tls_secret_restore", path=secret_path)
        apply_manifest(conn, secret_path, namespace, settings=settings)

    report = apply_directory(conn, os.path.join(instance_dir, STACK_DIR_NAME), namespace, settings=settings)
    if not report.ok:
        logger.warning("kubernetes.stack_partially_applied", namespace=namespace, failed=len(report.failures))

    if skip_ready_check:
        logger.info("kubernetes.ready_check_skipped", namespace=namespace)
        return OperationResult(ok=report.ok, action="start", namespace=namespace, apply_report=report, message="started")

    health = wait_for_instance_healthy(conn, namespace, timeout, settings=settings, console=console, poller=poller)
    return OperationResult(
        ok=report.ok,
        action="start",
        namespace=namespace,
        health=health,
        apply_report=report,
        message=f"{namespace} started",
    )


def stop(
    conn: ClusterConnection,
    instance_dir: str | os.PathLike,
    *,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> OperationResult:
    """Back up the TLS secret, then delete the namespace and wait until it is gone."""
    settings = settings or conn.settings
    namespace = extract_namespace(instance_dir)

    try:
        save_tls_secret(conn, namespace, instance_dir, settings.tls_secret_name)
    except (OsmanageError, OSError) as exc:
        logger.warning("kubernetes.tls_secret_backup_error", namespace=namespace, error=str(exc))

    logger.info("kubernetes.instance_stop", namespace=namespace)
    delete_namespace(conn, namespace)
    wait_for_namespace_deletion(conn, namespace, timeout, settings=settings, console=console, poller=poller)
    return OperationResult(ok=True, action="stop", namespace=namespace, message=f"{namespace} stopped")


def update(
    conn: ClusterConnection,
    instance_dir: str | os.PathLike,
    *,
    skip_ready_check: bool = False,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> OperationResult:
    """
    Re-apply the stack of a running instance.

    A namespace that is missing or not Active is a no-op: the new
    configuration takes effect on the next start.
    """
    settings = settings or conn.settings
    namespace = extract_namespace(instance_dir)

    if not namespace_is_active(conn, namespace):
        logger.info("kubernetes.instance_not_running", namespace=namespace)
        return OperationResult(
            ok=True,
            action="update",
            namespace=namespace,
            changed=False,
            message=f"{namespace} is not running; the configuration will be applied on its next start",
        )

    report = apply_directory(conn, os.path.join(os.fspath(instance_dir), STACK_DIR_NAME), namespace, settings=settings)
    if skip_ready_check:
        return OperationResult(ok=report.ok, action="update", namespace=namespace, apply_report=report, message="updated")

    health = wait_for_instance_healthy(conn, namespace, timeout, settings=settings, console=console, poller=poller)
    return OperationResult(
        ok=report.ok,
        action="update",
        namespace=namespace,
        health=health,
        apply_report=report,
        message=f"{namespace} updated",
    )


def check_instance_health(conn: ClusterConnection, instance_dir: str | os.PathLike, *, console: Optional[Console] = None):
    return check_health(conn, extract_namespace(instance_dir), console=console)
