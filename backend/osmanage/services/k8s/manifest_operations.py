"""
Generic resource applier.

Manifests are parsed into plain dicts, their kind is resolved against the
cluster's discovery data and the object is server-side applied with the
configured field manager.
"""

from __future__ import annotations

import os
from typing import Any, Optional

import yaml
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from ...config import Settings
from ...core.logging import get_logger
from ...exceptions import ApplyError, ManifestParseError, NamespaceRequiredError, OsmanageError, ResourceResolutionError
from ...schemas import ApplyFailure, ApplyReport, Manifest
from .connection import ClusterConnection
from .utils import is_manifest_file

logger = get_logger(__name__)


def parse_manifest(data: Any, source: Optional[str] = None) -> Manifest:
    if not isinstance(data, dict):
        raise ManifestParseError(f"{source or 'manifest'}: expected a mapping", details={"file": source})

    metadata = data.get("metadata") or {}
    api_version = data.get("apiVersion")
    kind = data.get("kind")
    name = metadata.get("name") if isinstance(metadata, dict) else None
    missing = [field for field, value in (("apiVersion", api_version), ("kind", kind), ("metadata.name", name)) if not value]
    if missing:
        raise ManifestParseError(
            f"{source or 'manifest'}: missing {', '.join(missing)}",
            details={"file": source, "missing": missing},
        )

    return Manifest(
        api_version=api_version,
        kind=kind,
        name=name,
        namespace=metadata.get("namespace") or None,
        body=data,
        source=source,
    )


def load_manifest(path: str | os.PathLike) -> Manifest:
    source = os.fspath(path)
    try:
        with open(source, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ManifestParseError(f"failed to read {source}: {exc}", details={"file": source}) from exc
    except yaml.YAMLError as exc:
        raise ManifestParseError(f"failed to parse {source}: {exc}", details={"file": source}) from exc
    return parse_manifest(data, source)


def _target_namespace(manifest: Manifest, namespace: Optional[str]) -> Optional[str]:
    if manifest.namespace:
        return manifest.namespace
    if manifest.kind == "Namespace":
        return manifest.name
    return namespace


def apply_resource(
    conn: ClusterConnection,
    manifest: Manifest,
    namespace: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    """
    Server-side apply one parsed manifest.

    Args:
        conn: cluster connection
        manifest: parsed manifest
        namespace: used for namespaced kinds whose manifest names no namespace

    Returns:
        The namespace the resource belongs to (its own name for a Namespace).
    """
    settings = settings or conn.settings
    target_ns = _target_namespace(manifest, namespace)
    try:
        endpoint = conn.dynamic.resolve(manifest.api_version, manifest.kind)
    except (ApiException, HTTPError) as exc:
        raise ResourceResolutionError(
            f"failed to resolve {manifest.kind} in {manifest.api_version}: {exc}",
            details={"kind": manifest.kind, "apiVersion": manifest.api_version, "file": manifest.source},
        ) from exc

    body = manifest.body
    if endpoint.namespaced:
        if not target_ns:
            raise NamespaceRequiredError(
                f"{manifest.kind}/{manifest.name} is namespaced but no namespace was given",
                details={"kind": manifest.kind, "name": manifest.name, "file": manifest.source},
            )
        if body.get("metadata", {}).get("namespace") != target_ns:
            body = {**body, "metadata": {**body.get("metadata", {}), "namespace": target_ns}}

    try:
        conn.dynamic.apply(
            endpoint,
            body,
            field_manager=settings.field_manager,
            namespace=target_ns if endpoint.namespaced else None,
        )
    except (ApiException, HTTPError) as exc:
        reason = getattr(exc, "reason", None) or str(exc)
        raise ApplyError(
            f"failed to apply {manifest.kind}/{manifest.name}: {reason}",
            details={"kind": manifest.kind, "name": manifest.name, "namespace": target_ns, "status": getattr(exc, "status", None)},
        ) from exc

    logger.info("kubernetes.manifest_applied", kind=manifest.kind, name=manifest.name, namespace=target_ns)
    return target_ns


def apply_manifest(
    conn: ClusterConnection,
    path: str | os.PathLike,
    namespace: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    return apply_resource(conn, load_manifest(path), namespace, settings=settings)


def apply_directory(
    conn: ClusterConnection,
    directory: str | os.PathLike,
    namespace: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> ApplyReport:
    """
    Apply every manifest file of a directory, in listing order.

    Sub-directories are not descended into. A failing file is logged and
    recorded in the report; the remaining files are still applied.
    """
    directory = os.fspath(directory)
    report = ApplyReport()
    try:
        entries = sorted(os.listdir(directory))
    except OSError as exc:
        raise ManifestParseError(f"failed to read directory {directory}: {exc}", details={"dir": directory}) from exc

    for entry in entries:
        path = os.path.join(directory, entry)
        if not os.path.isfile(path) or not is_manifest_file(entry):
            logger.debug("kubernetes.manifest_skipped", file=path)
            continue
        try:
            apply_manifest(conn, path, namespace, settings=settings)
        except OsmanageError as exc:
            logger.error("kubernetes.manifest_apply_error", file=path, code=exc.code, error=exc.message)
            report.failures.append(ApplyFailure(file=path, error=exc.message))
            continue
        report.applied.append(path)

    logger.info(
        "kubernetes.directory_applied",
        dir=directory,
        applied=len(report.applied),
        failed=len(report.failures),
    )
    return report
