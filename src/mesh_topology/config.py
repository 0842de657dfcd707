"""Config file loading and auto-discovery for mesh-topology.

Searches for ``mesh-topology.yaml`` in the current directory and parent
directories and parses it into a ``MeshConfig``.  Every key is optional;
missing keys keep the Istio defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

CONFIG_FILENAME = "mesh-topology.yaml"

# Fixed mesh conventions
MULTI_CLUSTER_LABEL_SELECTOR = "istio/multiCluster=true"
CLUSTER_ANNOTATION = "networking.istio.io/cluster"
CLUSTER_ID_ENV = "CLUSTER_ID"
NETWORK_LABEL = "topology.istio.io/network"
SIDECAR_INJECTOR_VALUES_KEY = "values"

_STRING_KEYS = (
    "istio_namespace",
    "istiod_deployment_name",
    "sidecar_injector_config_map",
    "cluster_name",
)


@dataclass(frozen=True)
class MeshConfig:
    """Parsed mesh-topology configuration.

    Raises ``ValueError`` on construction when a name is empty or
    ``remote_workers`` is below 1.
    """

    config_path: Path | None = None
    istio_namespace: str = "istio-system"
    istiod_deployment_name: str = "istiod"
    sidecar_injector_config_map: str = "istio-sidecar-injector"
    cluster_name: str = "Kubernetes"
    in_cluster: bool = True
    remote_workers: int = 4

    def __post_init__(self) -> None:
        for key in _STRING_KEYS:
            value = getattr(self, key)
            if not isinstance(value, str) or not value:
                msg = f"{key} must be a non-empty string, got {value!r}"
                raise ValueError(msg)
        if isinstance(self.remote_workers, bool) or not isinstance(self.remote_workers, int):
            msg = f"remote_workers must be an integer, got {self.remote_workers!r}"
            raise ValueError(msg)
        if self.remote_workers < 1:
            msg = f"remote_workers must be >= 1, got {self.remote_workers}"
            raise ValueError(msg)

    @property
    def egress_gateway_host(self) -> str:
        """FQDN of the mesh egress gateway service in the control namespace.

        Exposed for callers that special-case gateway traffic (telemetry
        consumers); cluster discovery itself does not read it.
        """
        return f"istio-egressgateway.{self.istio_namespace}.svc.cluster.local"


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest ``mesh-topology.yaml`` at or above *start*.

    *start* defaults to the working directory; ``None`` when no file exists
    up to the filesystem root.
    """
    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(
    path: str | Path | None = None,
    *,
    auto_discover: bool = True,
) -> MeshConfig:
    """Load mesh settings.

    An explicit *path* must exist.  Without one, the nearest config file is
    used when *auto_discover* is set; otherwise (or when none is found) all
    defaults apply.
    """
    if path is None:
        found = find_config() if auto_discover else None
        return _parse_config(found) if found is not None else MeshConfig()

    config_path = Path(path).resolve()
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return _parse_config(config_path)


def _parse_config(config_path: Path) -> MeshConfig:
    """Read a YAML config file and validate its keys and values."""
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}

    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ValueError(msg)

    known = {f.name for f in fields(MeshConfig)} - {"config_path"}
    unknown = sorted(str(key) for key in set(data) - known)
    if unknown:
        msg = f"Unknown config keys in {config_path}: {', '.join(unknown)}"
        raise ValueError(msg)

    if "in_cluster" in data and not isinstance(data["in_cluster"], bool):
        msg = f"in_cluster must be true or false in {config_path}, got {data['in_cluster']!r}"
        raise ValueError(msg)

    try:
        return MeshConfig(config_path=config_path, **data)
    except ValueError as e:
        raise ValueError(f"Invalid config in {config_path}: {e}") from e
