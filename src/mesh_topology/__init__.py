"""mesh-topology: discovers the clusters of an Istio multi-cluster mesh."""

__version__ = "0.1.0"

from mesh_topology.config import MeshConfig, find_config, load_config
from mesh_topology.credentials.decoder import (
    CredentialDecodeError,
    decode_remote_secret,
    remote_cluster_config,
)
from mesh_topology.kube.client import (
    KubeClient,
    KubeClientError,
    KubernetesClient,
    RemoteClientFactory,
    new_remote_client,
)
from mesh_topology.mesh.service import MeshService
from mesh_topology.models import (
    UNKNOWN_NETWORK,
    ClusterInfo,
    RemoteClusterConfig,
    RemoteSecret,
)

__all__ = [
    "ClusterInfo",
    "CredentialDecodeError",
    "decode_remote_secret",
    "find_config",
    "KubeClient",
    "KubeClientError",
    "KubernetesClient",
    "load_config",
    "MeshConfig",
    "MeshService",
    "new_remote_client",
    "remote_cluster_config",
    "RemoteClientFactory",
    "RemoteClusterConfig",
    "RemoteSecret",
    "UNKNOWN_NETWORK",
    "__version__",
]
