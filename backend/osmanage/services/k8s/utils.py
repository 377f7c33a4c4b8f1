"""
Helper functions shared by the k8s operation modules.
"""

import os
from typing import Any, Optional

from ...constants import MANIFEST_SUFFIXES, NAMESPACE_SEPARATOR, NODE_PRESSURE_CONDITIONS, SERVER_SIDE_METADATA


def extract_namespace(instance_dir: str | os.PathLike) -> str:
    """
    Derive the namespace from the instance directory name.

    The directory is named after the instance domain, e.g.
    ``my.instance.dir.org`` becomes ``myinstancedirorg``.
    """
    base = os.path.basename(os.path.normpath(os.fspath(instance_dir)))
    return base.replace(NAMESPACE_SEPARATOR, "")


def is_manifest_file(filename: str) -> bool:
    return filename.lower().endswith(MANIFEST_SUFFIXES)


def get_condition(conditions: Optional[list], condition_type: str) -> Any:
    for cond in conditions or []:
        if getattr(cond, "type", None) == condition_type:
            return cond
    return None


def is_pod_ready(pod: Any) -> bool:
    status = getattr(pod, "status", None)
    cond = get_condition(getattr(status, "conditions", None), "Ready")
    return cond is not None and cond.status == "True"


def is_pod_counted(pod: Any) -> bool:
    """Pods that already completed or are being torn down do not count."""
    if getattr(pod.metadata, "deletion_timestamp", None) is not None:
        return False
    phase = getattr(pod.status, "phase", None) if pod.status else None
    return phase != "Succeeded"


def is_node_ready(node: Any) -> bool:
    status = getattr(node, "status", None)
    cond = get_condition(getattr(status, "conditions", None), "Ready")
    return cond is not None and cond.status == "True"


def node_pressures(node: Any) -> list[str]:
    status = getattr(node, "status", None)
    pressures = []
    for cond in getattr(status, "conditions", None) or []:
        if cond.type in NODE_PRESSURE_CONDITIONS and cond.status == "True":
            pressures.append(cond.type)
    return pressures


def build_image_reference(template: str, registry: str, tag: str) -> str:
    return template.format(registry=registry.rstrip("/"), tag=tag)


def strip_server_fields(data: dict) -> dict:
    """Drop server populated metadata from a serialized object, in place."""
    metadata = data.get("metadata") or {}
    for key in SERVER_SIDE_METADATA:
        metadata.pop(key, None)
    data.pop("status", None)
    return data

