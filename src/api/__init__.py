"""HTTP routes over the token service."""
