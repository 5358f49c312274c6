"""ASGI middleware of the highlights service."""
