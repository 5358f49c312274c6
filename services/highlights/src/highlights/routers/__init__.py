"""HTTP routers of the highlights service."""
