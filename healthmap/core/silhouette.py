"""
Dog Silhouette Module.

The default health map background: a line drawing of a dog on the
400x300 logical canvas. The outline color is a parameter so the same
drawing serves the interactive view and the flattened export.
"""

from healthmap.app.constants import LOGICAL_HEIGHT, LOGICAL_WIDTH

_STROKE = 'stroke="{color}" stroke-width="{width}" stroke-linecap="round" fill="none"'

# (tag, geometry attributes, stroke width); None width means a filled dot.
SILHOUETTE_SHAPES = [
    # Body
    ("ellipse", 'cx="200" cy="180" rx="110" ry="65"', 2),
    # Neck
    ("path", 'd="M290 155 C305 140, 315 120, 320 105"', 2),
    ("path", 'd="M280 170 C300 160, 320 140, 330 120"', 2),
    # Head
    ("ellipse", 'cx="340" cy="90" rx="35" ry="30"', 2),
    # Snout
    ("ellipse", 'cx="370" cy="95" rx="18" ry="12"', 2),
    # Nose
    ("circle", 'cx="385" cy="93" r="3"', None),
    # Eye
    ("circle", 'cx="345" cy="82" r="3"', None),
    # Ear
    ("path", 'd="M320 70 C315 50, 325 35, 340 45"', 2),
    # Tail
    ("path", 'd="M90 155 C65 130, 50 110, 55 85"', 2),
    ("path", 'd="M55 85 C53 75, 58 68, 65 72"', 2),
    # Front legs
    ("path", 'd="M250 230 L255 270 Q255 280 248 280 L240 280"', 2),
    ("path", 'd="M230 232 L232 270 Q232 280 225 280 L217 280"', 2),
    # Back legs
    ("path", 'd="M150 228 L145 255 Q140 268, 135 270 Q132 280 138 280 L148 280"', 2),
    ("path", 'd="M170 230 L168 255 Q165 268, 160 270 Q157 280 163 280 L173 280"', 2),
    # Belly line
    ("path", 'd="M155 240 Q200 250, 245 238" opacity="0.5"', 1.5),
]


def silhouette_elements(color: str) -> str:
    """
    Renders the silhouette shapes as SVG elements in the given color.

    Args:
        color: Any SVG color value, e.g. '#a3b8a3'.

    Returns:
        str: A ``<g>`` element containing the outline.
    """
    parts = []
    for tag, geometry, width in SILHOUETTE_SHAPES:
        if width is None:
            parts.append(f'<{tag} {geometry} fill="{color}"/>')
        else:
            style = _STROKE.format(color=color, width=width)
            parts.append(f"<{tag} {geometry} {style}/>")
    return "<g>" + "".join(parts) + "</g>"


def silhouette_svg(color: str) -> str:
    """
    Returns a standalone SVG document of the silhouette on the logical canvas.

    Args:
        color: Outline color.
    """
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{LOGICAL_WIDTH}" height="{LOGICAL_HEIGHT}" '
        f'viewBox="0 0 {LOGICAL_WIDTH} {LOGICAL_HEIGHT}">'
        f"{silhouette_elements(color)}</svg>"
    )
