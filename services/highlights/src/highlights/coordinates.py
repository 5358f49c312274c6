"""
PDF coordinate grouping for the CorporaViewer highlights service.

Merges word bounding boxes that sit on the same text line of a page into
one rectangle, so the viewer draws one highlight per line instead of one
per word.
"""

from __future__ import annotations

from typing import Iterable

from cv_common.models import Coordinate, GroupedRect, Rect


def group_coordinates(coordinates: Iterable[Coordinate]) -> list[GroupedRect]:
    """Group *coordinates* per page and union rectangles sharing ``y0``.

    Pages keep the order in which they first appear; rectangles on a page
    keep the order of their first coordinate.
    """
    pages: dict[int, dict[float, Rect]] = {}
    for coord in coordinates:
        lines = pages.setdefault(coord.page, {})
        existing = lines.get(coord.y0)
        if existing is None:
            lines[coord.y0] = Rect(x0=coord.x0, y0=coord.y0, x1=coord.x1, y1=coord.y1)
        else:
            existing.x0 = min(existing.x0, coord.x0)
            existing.x1 = max(existing.x1, coord.x1)

    return [
        GroupedRect(page=page, coordinates=list(lines.values()))
        for page, lines in pages.items()
    ]
