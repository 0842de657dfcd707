"""Control-plane client abstraction."""
