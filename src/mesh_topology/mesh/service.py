"""MeshService: discovers every cluster participating in the mesh.

The service:
1. Resolves the home cluster (name, API endpoint, network)
2. Lists the multi-cluster credential secrets in the control namespace
3. For each secret, decodes the credential document, builds a remote
   client and reads the remote network
4. Returns the inventory: home cluster first, then remote clusters in the
   order their secrets were listed

Failures reaching the home cluster propagate.  Failures specific to one
remote cluster only degrade (or drop) that cluster's entry.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from mesh_topology.config import (
    CLUSTER_ANNOTATION,
    MULTI_CLUSTER_LABEL_SELECTOR,
    MeshConfig,
)
from mesh_topology.credentials.decoder import (
    CredentialDecodeError,
    decode_remote_secret,
    remote_cluster_config,
    secret_payload,
)
from mesh_topology.kube.client import KubeClient, RemoteClientFactory
from mesh_topology.mesh.identity import resolve_home_api_endpoint, resolve_home_cluster_name
from mesh_topology.mesh.network import resolve_home_network, resolve_remote_network
from mesh_topology.models import UNKNOWN_NETWORK, ClusterInfo

logger = logging.getLogger(__name__)


class MeshService:
    """Builds point-in-time cluster inventories for a mesh.

    Stateless between calls: every ``get_clusters()`` queries the clusters
    again.

    Args:
        k8s: Client bound to the home cluster.
        new_remote_client: Factory building a client for a remote cluster,
            or ``None`` in single-cluster deployments (remote entries are
            then reported as not accessible).
        config: Mesh settings; defaults to ``MeshConfig()``.
        environ: Environment used for the in-cluster endpoint; defaults to
            ``os.environ``.
    """

    def __init__(
        self,
        k8s: KubeClient,
        new_remote_client: RemoteClientFactory | None = None,
        config: MeshConfig | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._k8s = k8s
        self._new_remote_client = new_remote_client
        self._config = config or MeshConfig()
        self._environ = environ

    @property
    def config(self) -> MeshConfig:
        return self._config

    def get_clusters(self) -> list[ClusterInfo]:
        """Discover the home cluster and all remote clusters of the mesh.

        Raises:
            KubeClientError: If the home cluster cannot be queried.
        """
        home = self.resolve_home_cluster()
        remotes = self.resolve_remote_clusters()
        clusters = _merge_clusters(home, remotes)
        logger.info(
            "Resolved %d cluster(s) in mesh (home: %s)", len(clusters), home.name,
        )
        return clusters

    def resolve_home_cluster(self) -> ClusterInfo:
        """Resolve the cluster this process runs in (or is configured against)."""
        return ClusterInfo(
            name=resolve_home_cluster_name(self._k8s, self._config),
            api_endpoint=resolve_home_api_endpoint(self._k8s, self._config, self._environ),
            is_kiali_home=True,
            secret_name="",
            network=resolve_home_network(self._k8s, self._config),
            accessible=True,
        )

    def resolve_remote_clusters(self) -> list[ClusterInfo]:
        """Resolve every cluster referenced by a multi-cluster secret.

        Secrets are resolved in parallel; the result keeps listing order.
        Secrets that cannot be decoded are skipped.
        """
        secrets = self._k8s.get_secrets(
            self._config.istio_namespace, MULTI_CLUSTER_LABEL_SELECTOR,
        )
        if not secrets:
            return []

        workers = min(self._config.remote_workers, len(secrets))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="mesh-remote",
        ) as pool:
            results = list(pool.map(self._resolve_remote_cluster, secrets))
        return [cluster for cluster in results if cluster is not None]

    # --- Private ---

    def _resolve_remote_cluster(self, secret: Any) -> ClusterInfo | None:
        """Build one remote entry; ``None`` means the secret is skipped."""
        metadata = secret.metadata
        secret_name = (metadata.name if metadata else None) or ""
        annotations = (metadata.annotations if metadata else None) or {}

        cluster_name = annotations.get(CLUSTER_ANNOTATION)
        if not cluster_name:
            logger.warning(
                "Skipping secret %r: missing %s annotation", secret_name, CLUSTER_ANNOTATION,
            )
            return None

        try:
            doc = decode_remote_secret(secret_payload(secret, cluster_name))
        except CredentialDecodeError as exc:
            logger.warning("Skipping secret %r: %s", secret_name, exc)
            return None

        remote = remote_cluster_config(doc, cluster_name)
        if self._new_remote_client is None:
            return ClusterInfo(
                name=cluster_name,
                api_endpoint=remote.server,
                secret_name=secret_name,
                network=UNKNOWN_NETWORK,
                accessible=False,
            )

        try:
            remote_client = self._new_remote_client(remote)
        except Exception as exc:
            logger.warning(
                "Cannot build client for remote cluster %r (%s): %s",
                cluster_name, remote.server, exc,
            )
            return ClusterInfo(
                name=cluster_name,
                api_endpoint=remote.server,
                secret_name=secret_name,
                network=UNKNOWN_NETWORK,
                accessible=False,
            )

        try:
            network = resolve_remote_network(remote_client, self._config)
        finally:
            _close_quietly(remote_client, cluster_name)

        return ClusterInfo(
            name=cluster_name,
            api_endpoint=remote.server,
            secret_name=secret_name,
            network=network,
            accessible=True,
        )


def _close_quietly(remote_client: Any, cluster_name: str) -> None:
    """Close a remote client if it supports it; failures are only logged."""
    close = getattr(remote_client, "close", None)
    if not callable(close):
        return
    try:
        close()
    except Exception as exc:
        logger.warning("Cannot close client for remote cluster %r: %s", cluster_name, exc)


def _merge_clusters(home: ClusterInfo, remotes: list[ClusterInfo]) -> list[ClusterInfo]:
    """Key clusters by name: home first, later remotes replace earlier ones in place."""
    by_name: dict[str, ClusterInfo] = {home.name: home}
    for cluster in remotes:
        if cluster.name == home.name:
            logger.warning(
                "Ignoring secret %r: cluster %r is the home cluster",
                cluster.secret_name, cluster.name,
            )
            continue
        previous = by_name.get(cluster.name)
        if previous is not None:
            logger.warning(
                "Cluster %r found in secrets %r and %r; using %r",
                cluster.name, previous.secret_name, cluster.secret_name, cluster.secret_name,
            )
        by_name[cluster.name] = cluster
    return list(by_name.values())
