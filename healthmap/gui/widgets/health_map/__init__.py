"""
Health Map Widget Package.

Interactive health map components organized into separate modules.
"""

from healthmap.gui.widgets.health_map.coordinate_system import (
    HealthMapCoordinateSystem,
)
from healthmap.gui.widgets.health_map.health_map_view import HealthMapView
from healthmap.gui.widgets.health_map.health_map_widget import HealthMapWidget
from healthmap.gui.widgets.health_map.interaction_controller import (
    InteractionController,
    InteractionMode,
    InteractionState,
)
from healthmap.gui.widgets.health_map.marker_popup import MarkerPopup

__all__ = [
    "HealthMapCoordinateSystem",
    "HealthMapView",
    "HealthMapWidget",
    "InteractionController",
    "InteractionMode",
    "InteractionState",
    "MarkerPopup",
]
