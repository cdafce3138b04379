"""
Application Constants.
Stores default values for the health map canvas, rendering and UI configuration.
"""

# Window Configuration
WINDOW_TITLE = "Pet Health Map - v0.3.0"
DEFAULT_WINDOW_WIDTH = 960
DEFAULT_WINDOW_HEIGHT = 720
WINDOW_SETTINGS_KEY = "GroomDesk"
WINDOW_SETTINGS_APP = "PetHealthMap"
SETTINGS_ACTIVE_DB_KEY = "active_database"
SETTINGS_LAST_PET_ID_KEY = "last_pet_id"
DEFAULT_DB_NAME = "pets.healthmap"

# Logical canvas all markers are defined against
LOGICAL_WIDTH = 400
LOGICAL_HEIGHT = 300

# Marker rendering
MARKER_COLOR = "#ef4444"
MARKER_RING_COLOR = "#ffffff"
MARKER_RADIUS = 8
MARKER_GLOW_RADIUS = 12
MARKER_GLOW_OPACITY = 0.15
MARKER_SELECTED_RADIUS = 14
MARKER_LABEL_MAX_CHARS = 12

# Silhouette / background colors
SILHOUETTE_COLOR = "#a3b8a3"
SILHOUETTE_EXPORT_COLOR = "#7d977d"
BACKGROUND_COLOR = "#f3f6f1"

# Flatten / export
EXPORT_SCALE = 2
EXPORT_IMAGE_FORMAT = "PNG"
IMAGE_FETCH_TIMEOUT = 15.0

# Marker popup geometry
POPUP_WIDTH = 220
POPUP_OFFSET_ABOVE = 80
POPUP_OFFSET_BELOW = 20
POPUP_EDGE_MARGIN = 10
POPUP_RIGHT_RESERVE = 230

# Status Messages
STATUS_SAVING = "Saving..."
STATUS_SAVE_FAILED = "Couldn't save the last change. It has been undone."
STATUS_EXPORTING = "Exporting health map..."
STATUS_EXPORT_DONE = "Health map saved to photos."
STATUS_EXPORT_FAILED = "Export failed."
STATUS_MESSAGE_TIMEOUT_MS = 4000

# File Dialog Filters
SUPPORTED_IMAGE_FORMATS = ["png", "jpg", "jpeg", "bmp", "webp"]
IMAGE_FILE_FILTER = (
    f"Images ({' '.join(['*.' + ext for ext in SUPPORTED_IMAGE_FORMATS])})"
)
