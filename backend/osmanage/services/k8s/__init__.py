"""
Kubernetes operations for osmanage.

- connection: cluster connection and lazily built handles
- discovery / dynamic_client: kind resolution and untyped server-side apply
- manifest_operations: generic resource applier
- polling / progress: bounded polling and operator output
- pod_operations, deployment_ops, namespace_operations: health snapshots and waits
- config_operations: TLS secret backup
- service_operations: service address lookup
- base_operations: cluster status
- instance_operations: Start / Stop / Update
"""

from .connection import ClusterConnection, connect, create_api_client
from .discovery import KindResolver, discover_endpoints
from .dynamic_client import UntypedClient
from .manifest_operations import apply_directory, apply_manifest, apply_resource, load_manifest, parse_manifest
from .polling import Poller, make_poller, wait_poller
from .progress import ProgressReporter, get_console
from .pod_operations import check_health, get_health_snapshot, print_health, wait_for_instance_healthy
from .deployment_ops import (
    get_container_image,
    get_rollout,
    patch_container_image,
    print_rollout,
    revert_image,
    scale,
    update_image,
    wait_for_deployment_ready,
)
from .namespace_operations import delete_namespace, namespace_is_active, namespace_is_gone, wait_for_namespace_deletion
from .config_operations import get_secret_yaml, save_tls_secret, tls_secret_path
from .service_operations import get_service_address
from .base_operations import cluster_status, get_cluster_status, print_cluster_status
from .instance_operations import check_instance_health, start, stop, update
from .utils import extract_namespace

__all__ = [
    "ClusterConnection",
    "connect",
    "create_api_client",
    "KindResolver",
    "discover_endpoints",
    "UntypedClient",
    "apply_directory",
    "apply_manifest",
    "apply_resource",
    "load_manifest",
    "parse_manifest",
    "Poller",
    "make_poller",
    "wait_poller",
    "ProgressReporter",
    "get_console",
    "check_health",
    "get_health_snapshot",
    "print_health",
    "wait_for_instance_healthy",
    "get_container_image",
    "get_rollout",
    "patch_container_image",
    "print_rollout",
    "revert_image",
    "scale",
    "update_image",
    "wait_for_deployment_ready",
    "delete_namespace",
    "namespace_is_active",
    "namespace_is_gone",
    "wait_for_namespace_deletion",
    "get_secret_yaml",
    "save_tls_secret",
    "tls_secret_path",
    "get_service_address",
    "cluster_status",
    "get_cluster_status",
    "print_cluster_status",
    "check_instance_health",
    "start",
    "stop",
    "update",
    "extract_namespace",
]
