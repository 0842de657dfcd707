"""Mesh topology resolution."""
