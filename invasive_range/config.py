"""
Shared configuration for the invasive range mapping pipeline.

Every stage takes its defaults from the constants below and accepts a keyword
override, so the CLI flags in create_invasive_range_map.py map directly onto
these names.
"""

from pathlib import Path

# Coordinate reference systems
TARGET_CRS = "EPSG:3857"      # Web Mercator - all processing and outputs
DETECTION_CRS = "EPSG:4326"   # Detection records arrive as WGS84 lon/lat

# Valid geographic domain for detection coordinates (lon, lat)
GEOGRAPHIC_BOUNDS = (-180.0, -90.0, 180.0, 90.0)

# Range building
BUFFER_DISTANCE_M = 6000      # Bridges counties separated by narrow water bodies
YEAR_CUTOFF = 2017            # Inclusive
SIMPLIFY_TOLERANCE_M = 250    # Vertex reduction for resolved boundaries

# Detection file layout
DATE_COLUMN = "observedDate"
LON_COLUMN = "lon"
LAT_COLUMN = "lat"
DATE_FORMATS = ("%d-%m-%Y", "%d/%m/%Y", "%d %b %Y", "%d %B %Y")

# Boundary sources
COMMON_ID_FIELD = "ID"

# Built-in polygon atlas: region key -> source file and its identifier field
ATLAS_SOURCES = {
    'county': {
        'path': "https://www2.census.gov/geo/tiger/GENZ2018/shp/cb_2018_us_county_20m.zip",
        'id_field': "GEOID",
        'description': "US counties (Census cartographic boundary, 1:20M)",
    },
    'state': {
        'path': "https://www2.census.gov/geo/tiger/GENZ2018/shp/cb_2018_us_state_20m.zip",
        'id_field': "GEOID",
        'description': "US states (Census cartographic boundary, 1:20M)",
    },
}
DEFAULT_ATLAS_REGION = "county"

# Secondary source default: Statistics Canada census divisions
SECONDARY_ID_FIELD = "CDUID"

# Outputs
OUTPUT_DIR = Path("outputs/invasive_range")
INFESTED_BOUNDARIES_FILE = "infested_boundaries.shp"
SHAPEFILE_FIELD_RENAMES = {
    'first_date': 'FirstDate',
    'first_year': 'FirstYear',
}
SHAPEFILE_SIDECARS = ('.shp', '.shx', '.dbf', '.prj', '.cpg')

# Rendering
VALUE_COLORMAP = "YlGn"
RANGE_OUTLINE_COLOR = "black"
RANGE_OUTLINE_WIDTH = 1.5
FIGURE_SIZE = (10, 8)
FIGURE_DPI = 150
