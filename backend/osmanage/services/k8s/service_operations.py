"""
Service lookups.
"""

from __future__ import annotations

from kubernetes.client.exceptions import ApiException

from ...core.logging import get_logger
from ...exceptions import ServiceAddressError
from .connection import ClusterConnection

logger = get_logger(__name__)


def get_service_address(conn: ClusterConnection, namespace: str, service_name: str) -> str:
    """Return ``<clusterIP>:<port>`` of the service's first port."""
    try:
        svc = conn.core_v1.read_namespaced_service(service_name, namespace)
    except ApiException as exc:
        if exc.status == 404:
            raise ServiceAddressError(
                f"service {service_name} not found in namespace {namespace}",
                details={"namespace": namespace, "service": service_name},
            ) from exc
        raise ServiceAddressError(
            f"failed to get service {namespace}/{service_name}: {exc.reason}",
            details={"namespace": namespace, "service": service_name, "status": exc.status},
        ) from exc

    cluster_ip = svc.spec.cluster_ip if svc.spec else None
    if not cluster_ip or cluster_ip == "None":
        raise ServiceAddressError(f"service {service_name} has no ClusterIP", details={"service": service_name})

    ports = (svc.spec.ports if svc.spec else None) or []
    if not ports:
        raise ServiceAddressError(f"service {service_name} has no ports", details={"service": service_name})

    address = f"{cluster_ip}:{ports[0].port}"
    logger.debug("kubernetes.service_address", namespace=namespace, service=service_name, address=address)
    return address
