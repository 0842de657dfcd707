"""Home cluster identity: its logical name and reachable API endpoint."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from mesh_topology.config import CLUSTER_ID_ENV, MeshConfig
from mesh_topology.kube.client import KubeClient, ambient_api_endpoint

logger = logging.getLogger(__name__)


def resolve_home_cluster_name(k8s: KubeClient, config: MeshConfig) -> str:
    """Read ``CLUSTER_ID`` from the istiod deployment's containers.

    Falls back to ``config.cluster_name`` when the deployment or the
    variable is absent.  API errors other than not-found propagate.
    """
    deployment = k8s.get_deployment(config.istio_namespace, config.istiod_deployment_name)
    if deployment is None:
        logger.debug(
            "Deployment %s/%s not found, using default cluster name %r",
            config.istio_namespace, config.istiod_deployment_name, config.cluster_name,
        )
        return config.cluster_name

    cluster_id = _container_env(deployment, CLUSTER_ID_ENV)
    if not cluster_id:
        logger.debug(
            "%s not set on %s, using default cluster name %r",
            CLUSTER_ID_ENV, config.istiod_deployment_name, config.cluster_name,
        )
        return config.cluster_name
    return cluster_id


def resolve_home_api_endpoint(
    k8s: KubeClient,
    config: MeshConfig,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Return the API endpoint of the home cluster.

    In-cluster, the endpoint comes from the service host/port variables.
    Otherwise it is whatever the home client is configured against, with
    the same variables as the fallback.
    """
    if config.in_cluster:
        return ambient_api_endpoint(environ)
    return k8s.api_endpoint or ambient_api_endpoint(environ)


def _container_env(deployment: object, name: str) -> str:
    """First value of env var *name* across the pod template's containers."""
    spec = getattr(deployment, "spec", None)
    template = getattr(spec, "template", None)
    pod_spec = getattr(template, "spec", None)
    for container in getattr(pod_spec, "containers", None) or []:
        for var in container.env or []:
            if var.name == name and var.value:
                return var.value
    return ""
