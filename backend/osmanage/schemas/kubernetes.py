from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Manifest(BaseModel):
    """A parsed manifest document; ``body`` is the mapping as read from the file."""

    api_version: str
    kind: str
    name: str
    namespace: str | None = None
    body: dict[str, Any]
    source: str | None = None


class ResourceEndpoint(BaseModel):
    """Where the API server serves a given apiVersion/kind."""

    model_config = ConfigDict(frozen=True)

    group_version: str
    kind: str
    plural: str
    namespaced: bool

    @property
    def is_core(self) -> bool:
        return "/" not in self.group_version

    def collection_path(self, namespace: str | None = None) -> str:
        prefix = f"/api/{self.group_version}" if self.is_core else f"/apis/{self.group_version}"
        if self.namespaced and namespace:
            return f"{prefix}/namespaces/{namespace}/{self.plural}"
        return f"{prefix}/{self.plural}"

    def path(self, name: str, namespace: str | None = None) -> str:
        return f"{self.collection_path(namespace)}/{name}"


class PodStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phase: str
    ready: bool


class HealthSnapshot(BaseModel):
    """Point-in-time readiness of the pods in one namespace."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    total: int
    ready: int
    pods: tuple[PodStatus, ...] = ()

    @property
    def healthy(self) -> bool:
        return self.total > 0 and self.ready == self.total


class RolloutCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    status: str
    message: str | None = None


class DeploymentRollout(BaseModel):
    """Rollout counters of a deployment as observed in one probe."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str
    generation: int = 0
    observed_generation: int = 0
    desired: int = 1
    total: int = 0
    updated: int = 0
    ready: int = 0
    available: int = 0
    conditions: tuple[RolloutCondition, ...] = ()

    @property
    def generation_observed(self) -> bool:
        return self.observed_generation >= self.generation

    @property
    def all_updated(self) -> bool:
        return self.updated == self.desired

    @property
    def all_available(self) -> bool:
        return self.available == self.desired

    @property
    def all_ready(self) -> bool:
        return self.ready == self.desired

    @property
    def old_replicas_gone(self) -> bool:
        return self.total == self.desired

    @property
    def is_complete(self) -> bool:
        return (
            self.generation_observed
            and self.all_updated
            and self.all_available
            and self.all_ready
            and self.old_replicas_gone
        )


class NodeCondition(BaseModel):
    type: str
    status: str
    reason: str | None = None
    message: str | None = None


class NodeStatus(BaseModel):
    name: str
    ready: bool
    healthy: bool
    conditions: list[NodeCondition] = Field(default_factory=list)

    @property
    def pressure(self) -> list[str]:
        return [c.type for c in self.conditions if c.type != "Ready" and c.status == "True"]


class ClusterStatus(BaseModel):
    total: int
    ready: int
    nodes: list[NodeStatus] = Field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return self.ready == self.total

    def status_line(self) -> str:
        return f"cluster_status: {self.total} {self.ready}"


class ApplyFailure(BaseModel):
    file: str
    error: str


class ApplyReport(BaseModel):
    """Outcome of applying every manifest in a directory."""

    applied: list[str] = Field(default_factory=list)
    failures: list[ApplyFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class OperationResult(BaseModel):
    ok: bool
    message: str | None = None
    namespace: str | None = None
    changed: bool = True
    action: Literal["start", "stop", "update", "scale", "update-image", "revert-image"] | None = None
    health: HealthSnapshot | None = None
    rollout: DeploymentRollout | None = None
    previous_image: str | None = None
    apply_report: ApplyReport | None = None
