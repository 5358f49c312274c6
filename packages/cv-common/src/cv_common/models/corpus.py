"""
Transcript corpus data models for CorporaViewer.

The highlight engine reads meetings, sentences, translations and words
only through their index documents (see :mod:`cv_common.models.hits`);
the geometry they share lives here.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Coordinate(BaseModel):
    """A bounding box on one page of the source PDF.

    Attributes:
        page: Zero-based page number.
        x0: Left edge.
        y0: Top edge.
        x1: Right edge.
        y1: Bottom edge.
    """

    model_config = {"from_attributes": True}

    page: int = Field(..., ge=0, description="Zero-based page number.")
    x0: float
    y0: float
    x1: float
    y1: float
