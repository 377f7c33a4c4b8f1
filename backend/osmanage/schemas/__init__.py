from .kubernetes import (
    ApplyFailure,
    ApplyReport,
    ClusterStatus,
    DeploymentRollout,
    HealthSnapshot,
    Manifest,
    NodeCondition,
    NodeStatus,
    OperationResult,
    PodStatus,
    ResourceEndpoint,
    RolloutCondition,
)

__all__ = [
    "ApplyFailure",
    "ApplyReport",
    "ClusterStatus",
    "DeploymentRollout",
    "HealthSnapshot",
    "Manifest",
    "NodeCondition",
    "NodeStatus",
    "OperationResult",
    "PodStatus",
    "ResourceEndpoint",
    "RolloutCondition",
]
