"""Core data models for mesh-topology.

Defines the schemas for:
- Discovered clusters (the inventory entries)
- Remote credential documents (kubeconfig-shaped payloads held in secrets)
- Remote connection configs (what the remote client factory receives)
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_NETWORK = "unknown"


# --- Inventory ---


class ClusterInfo(BaseModel):
    """A cluster participating in the mesh.

    Exactly one entry of an inventory has ``is_kiali_home=True``; it is the
    cluster the resolving process runs in (or is configured against).
    """

    name: str = Field(..., min_length=1)
    api_endpoint: str = ""
    is_kiali_home: bool = False
    secret_name: str = ""
    network: str = UNKNOWN_NETWORK
    accessible: bool = False


# --- Remote credential document ---


class RemoteSecretCluster(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    server: str
    certificate_authority_data: str = Field(
        "", alias="certificate-authority-data",
    )


class RemoteSecretClusterListItem(BaseModel):
    name: str = ""
    cluster: RemoteSecretCluster


class RemoteSecretUserToken(BaseModel):
    token: str = ""


class RemoteSecretUser(BaseModel):
    name: str = ""
    user: RemoteSecretUserToken


class RemoteSecret(BaseModel):
    """Kubeconfig-shaped document stored in a multi-cluster secret.

    Only ``clusters`` and ``users`` are read; contexts and the rest of the
    kubeconfig are ignored.
    """

    clusters: list[RemoteSecretClusterListItem] = Field(min_length=1)
    users: list[RemoteSecretUser] = Field(min_length=1)


# --- Remote connection config ---


class RemoteClusterConfig(BaseModel):
    """Connection settings for a remote cluster, built from a RemoteSecret."""

    cluster_name: str
    server: str
    certificate_authority_data: str = ""
    token: str = Field("", repr=False)

    def to_kubeconfig(self) -> dict[str, Any]:
        """Render a single-context kubeconfig mapping for these settings."""
        cluster: dict[str, Any] = {"server": self.server}
        if self.certificate_authority_data:
            cluster["certificate-authority-data"] = self.certificate_authority_data
        return {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [{"name": self.cluster_name, "cluster": cluster}],
            "users": [{"name": self.cluster_name, "user": {"token": self.token}}],
            "contexts": [
                {
                    "name": self.cluster_name,
                    "context": {"cluster": self.cluster_name, "user": self.cluster_name},
                }
            ],
            "current-context": self.cluster_name,
        }
