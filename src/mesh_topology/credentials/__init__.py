"""Remote credential decoding."""
