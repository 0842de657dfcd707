"""Control-plane client abstraction and its kubernetes-backed implementation.

The resolver only talks to the ``KubeClient`` protocol.  ``KubernetesClient``
satisfies it with the official ``kubernetes`` Python client, using one
isolated ``ApiClient`` per instance so home and remote clusters never share
global SDK configuration.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from mesh_topology.models import RemoteClusterConfig

SERVICE_HOST_ENV = "KUBERNETES_SERVICE_HOST"
SERVICE_PORT_ENV = "KUBERNETES_SERVICE_PORT"

OPENSHIFT_API_GROUP = "route.openshift.io"


class KubeClientError(Exception):
    """Raised when a control-plane call fails for a reason other than not-found."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@runtime_checkable
class KubeClient(Protocol):
    """Protocol for control-plane clients.

    Getters return ``None`` when the object does not exist and raise
    ``KubeClientError`` for any other API failure.
    """

    @property
    def api_endpoint(self) -> str:
        """The API server URL this client is configured against."""
        ...

    def is_openshift(self) -> bool: ...

    def get_secrets(self, namespace: str, label_selector: str) -> list[Any]: ...

    def get_deployment(self, namespace: str, name: str) -> Any | None: ...

    def get_config_map(self, namespace: str, name: str) -> Any | None: ...

    def get_namespace(self, name: str) -> Any | None: ...


RemoteClientFactory = Callable[[RemoteClusterConfig], KubeClient]


def ambient_api_endpoint(environ: Mapping[str, str] | None = None) -> str:
    """Build ``http://<host>:<port>`` from the service host/port variables.

    Returns an empty string when either variable is unset.
    """
    env = os.environ if environ is None else environ
    host = env.get(SERVICE_HOST_ENV, "")
    port = env.get(SERVICE_PORT_ENV, "")
    if not host or not port:
        return ""
    return f"http://{host}:{port}"


class KubernetesClient:
    """``KubeClient`` backed by the kubernetes Python client.

    Args:
        api_client: A configured ``kubernetes.client.ApiClient``.
        request_timeout: Per-request timeout in seconds passed to every
            API call (``None`` uses the library default).
    """

    def __init__(
        self,
        api_client: Any,
        request_timeout: float | None = None,
    ) -> None:
        self._api_client = api_client
        self._request_timeout = request_timeout
        self._core = client.CoreV1Api(api_client)
        self._apps = client.AppsV1Api(api_client)

    # --- Constructors ---

    @classmethod
    def from_kubeconfig(
        cls,
        kubeconfig: str | None = None,
        context: str | None = None,
        request_timeout: float | None = None,
    ) -> KubernetesClient:
        api_client = config.new_client_from_config(
            config_file=kubeconfig, context=context, persist_config=False,
        )
        return cls(api_client, request_timeout=request_timeout)

    @classmethod
    def in_cluster(cls, request_timeout: float | None = None) -> KubernetesClient:
        configuration = client.Configuration()
        config.load_incluster_config(client_configuration=configuration)
        return cls(client.ApiClient(configuration), request_timeout=request_timeout)

    @classmethod
    def from_remote_config(
        cls,
        remote: RemoteClusterConfig,
        request_timeout: float | None = None,
    ) -> KubernetesClient:
        """Build a client for a remote cluster from decoded credentials."""
        api_client = config.new_client_from_config_dict(
            config_dict=remote.to_kubeconfig(),
            context=remote.cluster_name,
            persist_config=False,
        )
        return cls(api_client, request_timeout=request_timeout)

    # --- KubeClient ---

    @property
    def api_endpoint(self) -> str:
        return self._api_client.configuration.host or ""

    def is_openshift(self) -> bool:
        groups = self._call(client.ApisApi(self._api_client).get_api_versions)
        if groups is None:
            return False
        return any(group.name == OPENSHIFT_API_GROUP for group in groups.groups or [])

    def get_secrets(self, namespace: str, label_selector: str) -> list[Any]:
        result = self._call(
            self._core.list_namespaced_secret,
            namespace=namespace,
            label_selector=label_selector,
        )
        if result is None:
            return []
        return list(result.items or [])

    def get_deployment(self, namespace: str, name: str) -> Any | None:
        return self._call(
            self._apps.read_namespaced_deployment, name=name, namespace=namespace,
        )

    def get_config_map(self, namespace: str, name: str) -> Any | None:
        return self._call(
            self._core.read_namespaced_config_map, name=name, namespace=namespace,
        )

    def get_namespace(self, name: str) -> Any | None:
        return self._call(self._core.read_namespace, name=name)

    def close(self) -> None:
        self._api_client.close()

    # --- Private ---

    def _call(self, method: Callable[..., Any], **kwargs: Any) -> Any | None:
        """Invoke an API method, mapping 404 to ``None``."""
        if self._request_timeout is not None:
            kwargs["_request_timeout"] = self._request_timeout
        try:
            return method(**kwargs)
        except ApiException as e:
            if e.status == 404:
                return None
            raise KubeClientError(
                f"K8s API error ({e.status}): {e.reason}", status=e.status,
            ) from e


def new_remote_client(remote: RemoteClusterConfig) -> KubeClient:
    """Default remote client factory."""
    return KubernetesClient.from_remote_config(remote)
