"""Tests for mesh-topology data models."""

import pytest
from pydantic import ValidationError

from mesh_topology.models import UNKNOWN_NETWORK, ClusterInfo


class TestClusterInfo:
    def test_defaults(self):
        info = ClusterInfo(name="east")
        assert info.api_endpoint == ""
        assert info.is_kiali_home is False
        assert info.secret_name == ""
        assert info.network == UNKNOWN_NETWORK
        assert info.accessible is False

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ClusterInfo(name="")

    def test_serializes(self):
        info = ClusterInfo(name="east", is_kiali_home=True, network="n1", accessible=True)
        assert info.model_dump() == {
            "name": "east",
            "api_endpoint": "",
            "is_kiali_home": True,
            "secret_name": "",
            "network": "n1",
            "accessible": True,
        }
