"""
cv-common: Shared library for CorporaViewer.

Provides common data models, configuration management, structured
logging, text normalisation, and Prometheus metrics helpers used by the
CorporaViewer services.
"""

from cv_common.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
