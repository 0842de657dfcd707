"""Network identity of home and remote clusters.

The home cluster's network comes from the sidecar injector values
(``global.network``); remote clusters expose it as a label on the control
namespace.  Both resolve to ``UNKNOWN_NETWORK`` rather than an empty string.
"""

from __future__ import annotations

import json
import logging

from mesh_topology.config import NETWORK_LABEL, SIDECAR_INJECTOR_VALUES_KEY, MeshConfig
from mesh_topology.kube.client import KubeClient
from mesh_topology.models import UNKNOWN_NETWORK

logger = logging.getLogger(__name__)


def resolve_home_network(k8s: KubeClient, config: MeshConfig) -> str:
    """Read ``global.network`` from the sidecar injector ConfigMap.

    A missing ConfigMap, key or field, or unparsable JSON yields
    ``UNKNOWN_NETWORK``.  API errors other than not-found propagate.
    """
    config_map = k8s.get_config_map(config.istio_namespace, config.sidecar_injector_config_map)
    if config_map is None:
        logger.debug(
            "ConfigMap %s/%s not found",
            config.istio_namespace, config.sidecar_injector_config_map,
        )
        return UNKNOWN_NETWORK

    raw = (config_map.data or {}).get(SIDECAR_INJECTOR_VALUES_KEY)
    if not raw:
        return UNKNOWN_NETWORK

    try:
        values = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.debug("Cannot parse sidecar injector values: %s", e)
        return UNKNOWN_NETWORK

    global_values = values.get("global") if isinstance(values, dict) else None
    network = global_values.get("network") if isinstance(global_values, dict) else None
    if isinstance(network, str) and network:
        return network
    return UNKNOWN_NETWORK


def resolve_remote_network(k8s: KubeClient, config: MeshConfig) -> str:
    """Read the network label from the remote control namespace.

    Never raises: lookup failures are logged and yield ``UNKNOWN_NETWORK``.
    """
    try:
        namespace = k8s.get_namespace(config.istio_namespace)
    except Exception as exc:
        logger.warning(
            "Cannot read namespace %s on remote cluster: %s", config.istio_namespace, exc,
        )
        return UNKNOWN_NETWORK

    if namespace is None or namespace.metadata is None:
        return UNKNOWN_NETWORK
    network = (namespace.metadata.labels or {}).get(NETWORK_LABEL)
    return network or UNKNOWN_NETWORK
