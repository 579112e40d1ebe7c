"""HTTP API for the index pool service."""
