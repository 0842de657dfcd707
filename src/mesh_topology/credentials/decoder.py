"""Remote credential decoding.

Multi-cluster secrets hold one kubeconfig-shaped YAML document per target
cluster.  This module turns the raw secret value into a ``RemoteSecret``
and then into the ``RemoteClusterConfig`` handed to the remote client
factory.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

import yaml
from pydantic import ValidationError

from mesh_topology.models import RemoteClusterConfig, RemoteSecret


class CredentialDecodeError(Exception):
    """Raised when a credential secret or document cannot be decoded."""


def secret_payload(secret: Any, key: str) -> bytes:
    """Return the decoded bytes stored under *key* in a secret's data.

    The Kubernetes API returns secret data base64-encoded.

    Raises:
        CredentialDecodeError: If the key is missing or is not valid base64.
    """
    data = secret.data or {}
    encoded = data.get(key)
    if encoded is None:
        raise CredentialDecodeError(f"Secret has no data key '{key}'")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CredentialDecodeError(f"Data key '{key}' is not valid base64: {e}") from e


def decode_remote_secret(raw: bytes) -> RemoteSecret:
    """Parse a kubeconfig-shaped credential document.

    Raises:
        CredentialDecodeError: If the payload is not YAML, not a mapping,
            or lacks at least one cluster and one user.
    """
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise CredentialDecodeError(f"Invalid YAML in credential document: {e}") from e

    if not isinstance(data, dict):
        raise CredentialDecodeError(
            f"Credential document must be a mapping, got {type(data).__name__}"
        )

    try:
        return RemoteSecret.model_validate(data)
    except ValidationError as e:
        raise CredentialDecodeError(f"Invalid credential document: {e}") from e


def remote_cluster_config(doc: RemoteSecret, cluster_name: str) -> RemoteClusterConfig:
    """Build connection settings from the first cluster and first user.

    Entries are not matched by name; index 0 of each list is the active pair.
    """
    cluster = doc.clusters[0].cluster
    user = doc.users[0].user
    return RemoteClusterConfig(
        cluster_name=cluster_name,
        server=cluster.server,
        certificate_authority_data=cluster.certificate_authority_data,
        token=user.token,
    )
