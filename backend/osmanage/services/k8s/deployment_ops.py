"""
Deployment operations: rollout snapshots and waits, Scale, Update-Image / Revert.
"""

from __future__ import annotations

import os
from typing import Optional

from kubernetes.client.exceptions import ApiException
from rich.console import Console

from ...config import Settings
from ...core.logging import get_logger
from ...constants import DEPLOYMENT_FILE_TEMPLATE, ICON_NOT_READY, ICON_READY, STACK_DIR_NAME
from ...exceptions import ClusterOperationError, WaitTimeoutError
from ...schemas import DeploymentRollout, OperationResult, RolloutCondition
from .connection import ClusterConnection
from .manifest_operations import apply_manifest
from .polling import Poller, wait_poller
from .progress import ProgressReporter, get_console
from .utils import build_image_reference, extract_namespace

logger = get_logger(__name__)


def _rollout_from_deployment(namespace: str, deployment) -> DeploymentRollout:
    spec = deployment.spec
    status = deployment.status
    desired = spec.replicas if spec is not None and spec.replicas is not None else 1

    conditions = tuple(
        RolloutCondition(type=c.type, status=c.status, message=c.message)
        for c in ((status.conditions if status else None) or [])
    )
    return DeploymentRollout(
        namespace=namespace,
        name=deployment.metadata.name,
        generation=deployment.metadata.generation or 0,
        observed_generation=(status.observed_generation if status else None) or 0,
        desired=desired,
        total=(status.replicas if status else None) or 0,
        updated=(status.updated_replicas if status else None) or 0,
        ready=(status.ready_replicas if status else None) or 0,
        available=(status.available_replicas if status else None) or 0,
        conditions=conditions,
    )


def get_rollout(conn: ClusterConnection, namespace: str, name: str) -> DeploymentRollout:
    deployment = conn.apps_v1.read_namespaced_deployment(name, namespace)
    return _rollout_from_deployment(namespace, deployment)


def print_rollout(rollout: DeploymentRollout, console: Optional[Console] = None) -> None:
    console = console or get_console()
    console.print(f"\nDeployment: {rollout.name} (namespace: {rollout.namespace})")
    console.print(f"Generation: {rollout.observed_generation}/{rollout.generation} (observed/current)")
    console.print("Replicas:")
    console.print(f"  Desired:   {rollout.desired}")
    console.print(f"  Current:   {rollout.total}")
    console.print(f"  Ready:     {rollout.ready}")
    console.print(f"  Updated:   {rollout.updated}")
    console.print(f"  Available: {rollout.available}")

    if rollout.conditions:
        console.print("\nConditions:")
        for cond in rollout.conditions:
            icon = ICON_READY if cond.status == "True" else ICON_NOT_READY
            console.print(f"  {icon} {cond.type:<20} {cond.message or ''}")
    console.print()


def wait_for_deployment_ready(
    conn: ClusterConnection,
    namespace: str,
    name: str,
    timeout: Optional[float] = None,
    *,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> DeploymentRollout:
    """Block until the deployment's rollout is complete; prints its status on timeout."""
    settings = settings or conn.settings
    console = console or get_console()
    poller = wait_poller(settings, timeout, settings.deployment_timeout_seconds, f"deployment {namespace}/{name}", poller)

    logger.info("kubernetes.wait_deployment", namespace=namespace, name=name, timeout=poller.timeout)
    with ProgressReporter(f"Waiting for {name} deployment rollout", console=console, enabled=settings.show_progress) as progress:
        try:
            rollout = poller.run(
                lambda: get_rollout(conn, namespace, name),
                lambda r: r.is_complete,
                on_tick=lambda r: progress.update(r.ready, r.desired),
            )
        except WaitTimeoutError as exc:
            if exc.last_snapshot is not None:
                print_rollout(exc.last_snapshot, console)
            raise

    logger.info("kubernetes.deployment_ready", namespace=namespace, name=name, replicas=rollout.desired)
    return rollout


def scale(
    conn: ClusterConnection,
    instance_dir: str | os.PathLike,
    service: str,
    *,
    skip_ready_check: bool = False,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> OperationResult:
    """
    Re-apply ``stack/<service>-deployment.yaml`` and wait for its rollout.

    The replica count is taken from the manifest as edited by the operator.
    The deployment is expected to be named after the service.
    """
    if not service or not service.strip():
        raise ValueError("service must not be empty")

    settings = settings or conn.settings
    namespace = extract_namespace(instance_dir)
    path = os.path.join(os.fspath(instance_dir), STACK_DIR_NAME, DEPLOYMENT_FILE_TEMPLATE.format(service=service))

    logger.info("kubernetes.scale", namespace=namespace, service=service, manifest=path)
    apply_manifest(conn, path, namespace, settings=settings)

    if skip_ready_check:
        logger.info("kubernetes.ready_check_skipped", namespace=namespace, service=service)
        return OperationResult(ok=True, action="scale", namespace=namespace, message=f"{service} applied")

    rollout = wait_for_deployment_ready(
        conn, namespace, service, timeout, settings=settings, console=console, poller=poller
    )
    return OperationResult(
        ok=True,
        action="scale",
        namespace=namespace,
        rollout=rollout,
        message=f"{service} scaled to {rollout.desired} replicas",
    )


def get_container_image(conn: ClusterConnection, namespace: str, deployment: str, container: str) -> Optional[str]:
    try:
        obj = conn.apps_v1.read_namespaced_deployment(deployment, namespace)
    except ApiException as exc:
        raise ClusterOperationError(
            f"failed to read deployment {namespace}/{deployment}: {exc.reason}",
            details={"namespace": namespace, "deployment": deployment, "status": exc.status},
        ) from exc
    for c in obj.spec.template.spec.containers or []:
        if c.name == container:
            return c.image
    return None


def patch_container_image(conn: ClusterConnection, namespace: str, deployment: str, container: str, image: str) -> int:
    """Strategic merge patch of one container's image. Returns the new generation."""
    patch = {"spec": {"template": {"spec": {"containers": [{"name": container, "image": image}]}}}}
    try:
        updated = conn.apps_v1.patch_namespaced_deployment(deployment, namespace, patch)
    except ApiException as exc:
        raise ClusterOperationError(
            f"failed to patch deployment {namespace}/{deployment}: {exc.reason}",
            details={"namespace": namespace, "deployment": deployment, "image": image, "status": exc.status},
        ) from exc
    generation = updated.metadata.generation or 0
    logger.info("kubernetes.image_patched", namespace=namespace, deployment=deployment, image=image, generation=generation)
    return generation


def _set_image(
    conn: ClusterConnection,
    instance_dir: str | os.PathLike,
    registry: str,
    tag: str,
    action: str,
    *,
    skip_ready_check: bool,
    timeout: Optional[float],
    settings: Optional[Settings],
    console: Optional[Console],
    poller: Optional[Poller],
) -> OperationResult:
    if not tag or not tag.strip():
        raise ValueError("tag must not be empty")
    if not registry or not registry.strip():
        raise ValueError("registry must not be empty")

    settings = settings or conn.settings
    namespace = extract_namespace(instance_dir)
    deployment = settings.image_deployment_name
    container = settings.image_container_name
    image = build_image_reference(settings.image_template, registry, tag)

    previous = get_container_image(conn, namespace, deployment, container)
    if previous is None:
        # a strategic merge patch would append a new container
        raise ClusterOperationError(
            f"deployment {namespace}/{deployment} has no container named {container}",
            details={"namespace": namespace, "deployment": deployment, "container": container},
        )
    logger.info("kubernetes.set_image", action=action, namespace=namespace, image=image, previous=previous)
    patch_container_image(conn, namespace, deployment, container, image)

    rollout = None
    if not skip_ready_check:
        rollout = wait_for_deployment_ready(
            conn, namespace, deployment, timeout, settings=settings, console=console, poller=poller
        )
    return OperationResult(
        ok=True,
        action=action,
        namespace=namespace,
        rollout=rollout,
        previous_image=previous,
        changed=previous != image,
        message=f"{deployment} now runs {image}",
    )


def update_image(
    conn: ClusterConnection,
    instance_dir: str | os.PathLike,
    registry: str,
    tag: str,
    *,
    skip_ready_check: bool = False,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> OperationResult:
    return _set_image(
        conn, instance_dir, registry, tag, "update-image",
        skip_ready_check=skip_ready_check, timeout=timeout, settings=settings, console=console, poller=poller,
    )


def revert_image(
    conn: ClusterConnection,
    instance_dir: str | os.PathLike,
    registry: str,
    tag: str,
    *,
    skip_ready_check: bool = False,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    poller: Optional[Poller] = None,
) -> OperationResult:
    """Patch back to an operator supplied image; no prior image is stored anywhere."""
    return _set_image(
        conn, instance_dir, registry, tag, "revert-image",
        skip_ready_check=skip_ready_check, timeout=timeout, settings=settings, console=console, poller=poller,
    )
