"""Shared fixtures: an in-memory KubeClient and secret builders."""

from __future__ import annotations

import base64
from collections.abc import Callable
from typing import Any

import pytest
import yaml
from kubernetes import client

from mesh_topology.config import CLUSTER_ANNOTATION, MULTI_CLUSTER_LABEL_SELECTOR
from mesh_topology.kube.client import KubeClientError


class FakeKubeClient:
    """In-memory ``KubeClient``.

    Objects are keyed by ``(namespace, name)``; ``errors`` maps a method
    name to an exception raised by that method.
    """

    def __init__(
        self,
        *,
        deployments: dict[tuple[str, str], Any] | None = None,
        config_maps: dict[tuple[str, str], Any] | None = None,
        namespaces: dict[str, Any] | None = None,
        secrets: dict[tuple[str, str], list[Any]] | None = None,
        endpoint: str = "",
        openshift: bool = False,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.deployments = deployments or {}
        self.config_maps = config_maps or {}
        self.namespaces = namespaces or {}
        self.secrets = secrets or {}
        self.endpoint = endpoint
        self.openshift = openshift
        self.errors = errors or {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    @property
    def api_endpoint(self) -> str:
        return self.endpoint

    def is_openshift(self) -> bool:
        self._record("is_openshift")
        return self.openshift

    def get_secrets(self, namespace: str, label_selector: str) -> list[Any]:
        self._record("get_secrets", namespace, label_selector)
        return list(self.secrets.get((namespace, label_selector), []))

    def get_deployment(self, namespace: str, name: str) -> Any | None:
        self._record("get_deployment", namespace, name)
        return self.deployments.get((namespace, name))

    def get_config_map(self, namespace: str, name: str) -> Any | None:
        self._record("get_config_map", namespace, name)
        return self.config_maps.get((namespace, name))

    def get_namespace(self, name: str) -> Any | None:
        self._record("get_namespace", name)
        return self.namespaces.get(name)

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]


def remote_document(
    server: str = "https://192.168.144.17:123",
    ca_data: str = "eAo=",
    token: str = "bar",
    cluster_name: str = "KialiCluster",
    user_name: str = "foo",
) -> bytes:
    """Serialize a kubeconfig-shaped credential document."""
    doc = {
        "clusters": [
            {
                "name": cluster_name,
                "cluster": {
                    "certificate-authority-data": ca_data,
                    "server": server,
                },
            }
        ],
        "users": [{"name": user_name, "user": {"token": token}}],
    }
    return yaml.safe_dump(doc).encode("utf-8")


def istiod_deployment(cluster_id: str | None = "KialiCluster") -> Any:
    env = [client.V1EnvVar(name="PILOT_TRACE_SAMPLING", value="1.0")]
    if cluster_id is not None:
        env.append(client.V1EnvVar(name="CLUSTER_ID", value=cluster_id))
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name="istiod", namespace="istio-system"),
        spec=client.V1DeploymentSpec(
            selector=client.V1LabelSelector(match_labels={"app": "istiod"}),
            template=client.V1PodTemplateSpec(
                spec=client.V1PodSpec(
                    containers=[client.V1Container(name="discovery", env=env)],
                ),
            ),
        ),
    )


def sidecar_injector(values: str | None) -> Any:
    data = {} if values is None else {"values": values}
    return client.V1ConfigMap(
        metadata=client.V1ObjectMeta(name="istio-sidecar-injector"),
        data=data,
    )


def labeled_namespace(labels: dict[str, str] | None) -> Any:
    return client.V1Namespace(
        metadata=client.V1ObjectMeta(name="istio-system", labels=labels),
    )


def credential_secret(
    name: str,
    cluster: str | None,
    payload: bytes | None = None,
    data_key: str | None = None,
) -> Any:
    """Build a multi-cluster secret as returned by the Kubernetes API."""
    annotations = {CLUSTER_ANNOTATION: cluster} if cluster is not None else None
    key = data_key or cluster or "unknown"
    raw = payload if payload is not None else remote_document()
    return client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace="istio-system",
            labels={"istio/multiCluster": "true"},
            annotations=annotations,
        ),
        data={key: base64.b64encode(raw).decode("ascii")},
    )


@pytest.fixture()
def fake_kube() -> type[FakeKubeClient]:
    return FakeKubeClient


@pytest.fixture()
def make_secret() -> Callable[..., Any]:
    return credential_secret


@pytest.fixture()
def make_document() -> Callable[..., bytes]:
    return remote_document


@pytest.fixture()
def make_deployment() -> Callable[..., Any]:
    return istiod_deployment


@pytest.fixture()
def make_config_map() -> Callable[..., Any]:
    return sidecar_injector


@pytest.fixture()
def make_namespace() -> Callable[..., Any]:
    return labeled_namespace


@pytest.fixture()
def home_selector() -> tuple[str, str]:
    return ("istio-system", MULTI_CLUSTER_LABEL_SELECTOR)


@pytest.fixture()
def api_error() -> Callable[[int], KubeClientError]:
    def _make(status: int = 500) -> KubeClientError:
        return KubeClientError(f"K8s API error ({status}): boom", status=status)

    return _make
