"""Internal constants shared across the library."""

OVERPASS_URL = "https://overpass-api.de/api/interpreter"
USER_AGENT = "axoncity/0.1"

# ------------------------------------------------------------------
# Selection areas
# ------------------------------------------------------------------

MAX_AREAS = 4
AREA_NAMES: tuple[str, ...] = ("Area A", "Area B", "Area C", "Area D")
AREA_COLORS: tuple[tuple[int, int, int, int], ...] = (
    (59, 130, 246, 200),  # blue
    (249, 115, 22, 200),  # orange
    (34, 197, 94, 200),  # green
    (168, 85, 247, 200),  # purple
)

# ------------------------------------------------------------------
# Fetching
# ------------------------------------------------------------------

DEFAULT_BBOX_BUFFER_DEG = 0.001
DEFAULT_MAX_RETRIES = 3
RATE_LIMITED_STATUS = 429
GATEWAY_TIMEOUT_STATUS = 504

# ------------------------------------------------------------------
# Share links
# ------------------------------------------------------------------

DEFAULT_PITCH = 45
DEFAULT_BEARING = 0
DEFAULT_MAP_STYLE = "dark"

PRESET_CODES: dict[str, str] = {
    "built-intensity": "bi",
    "amenity-access": "aa",
    "bike-friendliness": "bf",
    "green-balance": "gb",
    "daily-needs": "dn",
}
PRESET_IDS: dict[str, str] = {code: preset for preset, code in PRESET_CODES.items()}

MAP_STYLE_CODES: dict[str, str] = {"light": "l", "satellite": "s"}
MAP_STYLES: dict[str, str] = {code: style for style, code in MAP_STYLE_CODES.items()}


def area_name(index: int) -> str:
    """Return the display name for the *index*-th area slot (``Area A`` ...)."""
    if 0 <= index < len(AREA_NAMES):
        return AREA_NAMES[index]
    return f"Area {chr(ord('A') + index)}"


def area_color(index: int) -> tuple[int, int, int, int]:
    return AREA_COLORS[index % len(AREA_COLORS)]
