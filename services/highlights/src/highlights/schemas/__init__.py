"""Request and response schemas of the highlights service."""
