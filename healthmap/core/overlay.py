"""
Export Overlay Module.

Builds the vector layer that is composited over the background when a
health map is flattened. The document is serialized and rendered outside
the interactive view, so it carries only presentation attributes: no
classes, no stylesheet, no hover or selection affordances.
"""

from typing import Iterable, Optional

from healthmap.app.constants import (
    LOGICAL_HEIGHT,
    LOGICAL_WIDTH,
    MARKER_COLOR,
    MARKER_GLOW_OPACITY,
    MARKER_GLOW_RADIUS,
    MARKER_RADIUS,
    MARKER_RING_COLOR,
)
from healthmap.core.marker import Marker
from healthmap.core.silhouette import silhouette_elements


def marker_elements(marker: Marker) -> str:
    """
    Static SVG for one marker: a translucent glow ring and a solid dot.

    Args:
        marker: Marker to draw, in fractional coordinates.

    Returns:
        str: SVG elements in logical canvas units.
    """
    cx = marker.x * LOGICAL_WIDTH
    cy = marker.y * LOGICAL_HEIGHT
    return (
        f'<circle cx="{cx:.3f}" cy="{cy:.3f}" r="{MARKER_GLOW_RADIUS}" '
        f'fill="{MARKER_COLOR}" fill-opacity="{MARKER_GLOW_OPACITY}" stroke="none"/>'
        f'<circle cx="{cx:.3f}" cy="{cy:.3f}" r="{MARKER_RADIUS}" '
        f'fill="{MARKER_COLOR}" stroke="{MARKER_RING_COLOR}" stroke-width="2"/>'
    )


def build_overlay_svg(
    markers: Iterable[Marker], silhouette_color: Optional[str] = None
) -> str:
    """
    Builds the self-contained overlay document for export.

    Args:
        markers: Markers to draw, in list order.
        silhouette_color: When set, a copy of the silhouette outline in this
            color is drawn underneath the markers. Pass None for photo
            backgrounds.

    Returns:
        str: SVG document sized to the logical canvas.
    """
    body = []
    if silhouette_color:
        body.append(silhouette_elements(silhouette_color))
    body.extend(marker_elements(m) for m in markers)
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" version="1.2" '
        f'width="{LOGICAL_WIDTH}" height="{LOGICAL_HEIGHT}" '
        f'viewBox="0 0 {LOGICAL_WIDTH} {LOGICAL_HEIGHT}">'
        + "".join(body)
        + "</svg>"
    )
