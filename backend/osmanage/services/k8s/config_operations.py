"""
Secret handling: TLS certificate backup used across Stop/Start.
"""

from __future__ import annotations

import os
from typing import Optional

import yaml
from kubernetes.client.exceptions import ApiException

from ...core.logging import get_logger
from ...constants import SECRET_FILE_PERM, SECRETS_DIR_NAME, SECRETS_DIR_PERM, TLS_CERT_SECRET_YAML
from ...exceptions import ClusterOperationError
from .connection import ClusterConnection
from .utils import strip_server_fields

logger = get_logger(__name__)


def tls_secret_path(instance_dir: str | os.PathLike) -> str:
    return os.path.join(os.fspath(instance_dir), SECRETS_DIR_NAME, TLS_CERT_SECRET_YAML)


def get_secret_yaml(conn: ClusterConnection, namespace: str, name: str) -> Optional[str]:
    """Secret as an applyable YAML document, or None when it does not exist."""
    try:
        secret = conn.core_v1.read_namespaced_secret(name, namespace)
    except ApiException as exc:
        if exc.status == 404:
            return None
        raise ClusterOperationError(
            f"failed to read secret {namespace}/{name}: {exc.reason}",
            details={"namespace": namespace, "secret": name, "status": exc.status},
        ) from exc

    data = conn.api_client.sanitize_for_serialization(secret)
    strip_server_fields(data)
    data.setdefault("apiVersion", "v1")
    data.setdefault("kind", "Secret")
    return yaml.safe_dump(data, sort_keys=False)


def _write_private(path: str, content: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SECRET_FILE_PERM)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
    # O_CREAT mode is ignored for existing files
    os.chmod(path, SECRET_FILE_PERM)


def save_tls_secret(
    conn: ClusterConnection,
    namespace: str,
    instance_dir: str | os.PathLike,
    secret_name: str = "tls-letsencrypt",
) -> Optional[str]:
    """
    Back up the TLS secret to ``<instance_dir>/secrets/``.

    Returns the written path, or None if the secret does not exist. The
    secrets directory is created owner-only; the file is written 0600.
    """
    content = get_secret_yaml(conn, namespace, secret_name)
    if content is None:
        logger.debug("kubernetes.tls_secret_absent", namespace=namespace, secret=secret_name)
        return None

    secrets_dir = os.path.join(os.fspath(instance_dir), SECRETS_DIR_NAME)
    os.makedirs(secrets_dir, mode=SECRETS_DIR_PERM, exist_ok=True)
    os.chmod(secrets_dir, SECRETS_DIR_PERM)

    path = tls_secret_path(instance_dir)
    _write_private(path, content)
    logger.info("kubernetes.tls_secret_saved", namespace=namespace, path=path)
    return path
