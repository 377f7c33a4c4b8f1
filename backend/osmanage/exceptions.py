from typing import Any, Dict, Optional


class OsmanageError(Exception):
    """Base class for errors raised by cluster operations."""

    code = "OSMANAGE_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ConnectionConfigError(OsmanageError):
    """No usable cluster configuration could be loaded."""

    code = "CONNECTION_CONFIG"


class ManifestParseError(OsmanageError):
    """A manifest file is unreadable, not YAML, or lacks apiVersion/kind/metadata.name."""

    code = "MANIFEST_PARSE"


class NamespaceRequiredError(OsmanageError):
    """A namespaced manifest carries no namespace and none was supplied."""

    code = "NAMESPACE_REQUIRED"


class ResourceResolutionError(OsmanageError):
    """apiVersion/kind is not served by the cluster."""

    code = "RESOURCE_RESOLUTION"


class ApplyError(OsmanageError):
    """The API server rejected a server-side apply."""

    code = "APPLY_FAILED"


class WaitTimeoutError(OsmanageError):
    """A readiness wait ran past its deadline.

    ``last_snapshot`` holds whatever the final probe observed (a
    HealthSnapshot, DeploymentRollout, or None when no probe succeeded).
    """

    code = "TIMEOUT"

    def __init__(self, message: str, *, last_snapshot: Any = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)
        self.last_snapshot = last_snapshot


class InstanceNotHealthyError(OsmanageError):
    code = "NOT_HEALTHY"

    def __init__(self, message: str, *, snapshot: Any = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)
        self.snapshot = snapshot


class ClusterUnhealthyError(OsmanageError):
    code = "CLUSTER_UNHEALTHY"

    def __init__(self, message: str, *, status: Any = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)
        self.status = status


class ClusterOperationError(OsmanageError):
    """Wraps an unexpected API failure of a workflow step."""

    code = "CLUSTER_OPERATION"


class ServiceAddressError(OsmanageError):
    code = "SERVICE_ADDRESS"
