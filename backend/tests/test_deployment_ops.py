import pytest
from kubernetes.client.exceptions import ApiException

from osmanage.exceptions import ClusterOperationError, WaitTimeoutError
from osmanage.schemas import DeploymentRollout
from osmanage.services.k8s.deployment_ops import (
    get_rollout,
    revert_image,
    scale,
    update_image,
    wait_for_deployment_ready,
)
from osmanage.services.k8s.instance_operations import start

from fakes import deployment, write_deployment

NS = "myinstancedirorg"

COMPLETE = dict(namespace=NS, name="backend", generation=2, observed_generation=2, desired=3, total=3, updated=3, ready=3, available=3)


def test_rollout_complete_when_all_counts_match():
    assert DeploymentRollout(**COMPLETE).is_complete


@pytest.mark.parametrize(
    "override, failing",
    [
        ({"observed_generation": 1}, "generation_observed"),
        ({"updated": 2}, "all_updated"),
        ({"available": 2}, "all_available"),
        ({"ready": 2}, "all_ready"),
        ({"total": 4}, "old_replicas_gone"),
    ],
)
def test_rollout_incomplete_when_any_part_fails(override, failing):
    rollout = DeploymentRollout(**{**COMPLETE, **override})
    assert not getattr(rollout, failing)
    assert not rollout.is_complete


def test_rollout_desired_defaults_to_one(conn, cluster):
    cluster.deployments[(NS, "backend")] = deployment(NS, "backend", None)
    assert get_rollout(conn, NS, "backend").desired == 1


def test_wait_prints_status_on_timeout(conn, cluster, console, make_poller):
    cluster.deployments[(NS, "backend")] = deployment(NS, "backend", 2)

    with pytest.raises(WaitTimeoutError) as excinfo:
        wait_for_deployment_ready(conn, NS, "backend", console=console, poller=make_poller(timeout=10))

    assert excinfo.value.last_snapshot.desired == 2
    out = console.file.getvalue()
    assert "Deployment: backend (namespace: myinstancedirorg)" in out
    assert "Desired:   2" in out


def test_start_then_scale_up(conn, cluster, console, make_poller, instance_dir):
    started = start(conn, instance_dir, console=console, poller=make_poller())
    assert started.health.ready == started.health.total == 2

    write_deployment(instance_dir / "stack" / "backend-deployment.yaml", "backend", 3)
    cluster.lag = 2
    reads_before = conn.apps_v1.deployment_reads

    result = scale(conn, instance_dir, "backend", console=console, poller=make_poller())

    rollout = result.rollout
    assert rollout.is_complete
    assert rollout.updated == rollout.available == rollout.ready == rollout.total == 3
    # two stale reads before the controller caught up
    assert conn.apps_v1.deployment_reads - reads_before == 3
    assert cluster.applied[-1] == ("Deployment", "backend", NS)


def test_scale_skip_ready_check(conn, cluster, instance_dir):
    result = scale(conn, instance_dir, "backend", skip_ready_check=True)
    assert result.rollout is None
    assert conn.apps_v1.deployment_reads == 0


def test_scale_requires_service(conn, instance_dir):
    with pytest.raises(ValueError):
        scale(conn, instance_dir, "  ")


def test_update_image_patches_single_container(conn, cluster, console, make_poller, instance_dir):
    cluster.deployments[(NS, "backendmanage")] = deployment(NS, "backendmanage", 1, image="reg/openslides-backend:4.1")

    result = update_image(conn, instance_dir, "registry.example.com", "4.2", console=console, poller=make_poller())

    assert cluster.patches == [
        (
            NS,
            "backendmanage",
            {"spec": {"template": {"spec": {"containers": [{"name": "backendmanage", "image": "registry.example.com/openslides-backend:4.2"}]}}}},
        )
    ]
    assert result.previous_image == "reg/openslides-backend:4.1"
    assert result.rollout.is_complete
    assert result.rollout.generation == 2


def test_revert_is_the_same_patch(conn, cluster, console, make_poller, instance_dir):
    cluster.deployments[(NS, "backendmanage")] = deployment(NS, "backendmanage", 1, image="reg/openslides-backend:4.2")

    result = revert_image(conn, instance_dir, "reg", "4.1", console=console, poller=make_poller())

    container = cluster.deployments[(NS, "backendmanage")].spec.template.spec.containers[0]
    assert container.image == "reg/openslides-backend:4.1"
    assert result.action == "revert-image"
    assert result.previous_image == "reg/openslides-backend:4.2"


def test_update_image_missing_deployment(conn, instance_dir):
    with pytest.raises(ClusterOperationError):
        update_image(conn, instance_dir, "reg", "4.2")


def test_update_image_requires_named_container(conn, cluster, instance_dir):
    dep = deployment(NS, "backendmanage", 1, image="reg/openslides-backend:4.1")
    dep.spec.template.spec.containers[0].name = "backend"
    cluster.deployments[(NS, "backendmanage")] = dep

    with pytest.raises(ClusterOperationError) as excinfo:
        update_image(conn, instance_dir, "reg", "4.2")

    assert excinfo.value.details["container"] == "backendmanage"
    assert cluster.patches == []
    containers = cluster.deployments[(NS, "backendmanage")].spec.template.spec.containers
    assert [(c.name, c.image) for c in containers] == [("backend", "reg/openslides-backend:4.1")]


def test_update_image_rejects_empty_tag(conn, instance_dir):
    with pytest.raises(ValueError):
        update_image(conn, instance_dir, "reg", "")


def test_patch_failure_is_not_retried(conn, cluster, instance_dir, monkeypatch):
    cluster.deployments[(NS, "backendmanage")] = deployment(NS, "backendmanage", 1)
    calls = []

    def failing_patch(name, namespace, body):
        calls.append(name)
        raise ApiException(status=409, reason="Conflict")

    monkeypatch.setattr(conn.apps_v1, "patch_namespaced_deployment", failing_patch)
    with pytest.raises(ClusterOperationError):
        update_image(conn, instance_dir, "reg", "4.2")
    assert calls == ["backendmanage"]
