"""
Core constants and identifiers used across the discharge chart pipeline.

Centralizing these values avoids hardcoded strings scattered throughout
the codebase and makes it easier to extend with new config keys or chart types.
"""

from enum import Enum

# Configuration keys
CONFIG_KEY_SOURCE = "source"
CONFIG_KEY_AGGREGATION = "aggregation"
CONFIG_KEY_VISUALIZATION = "visualization"
CONFIG_KEY_OUTPUT_DIRECTORY = "output_directory"

# Auxiliary config filenames (without extension)
GLOBAL_DEFAULTS_STEM = "global_defaults"

# Data source defaults
DEFAULT_SOURCE_URL = "https://health.data.ny.gov/resource/2yck-xisk.json"
DEFAULT_RECORD_LIMIT = 1000
DEFAULT_CATEGORY_FIELD = "major_diagnostic_category"
DEFAULT_FETCH_TIMEOUT = 60
DEFAULT_NULL_INDICATORS = ["", "NULL", "null", "NA", "N/A", "nan", "NaN"]

# Aggregation defaults
DEFAULT_UNKNOWN_LABEL = "Unknown"

# Viewport the bar chart sizes itself to when nothing else is configured
DEFAULT_VIEWPORT_WIDTH = 960
DEFAULT_VIEWPORT_HEIGHT = 500
DEFAULT_DPI = 100

# Bar chart layout (pixels)
BAR_AXIS_MARGIN = 20
BAR_MARGIN = 40
BAR_VALUE_MARGIN = 4
BAR_THICKNESS_RATIO = 0.4
BAR_PADDING_RATIO = 0.6
TOOLTIP_OFFSET = (10, -25)

# Pie chart layout (drawing units)
PIE_WIDTH = 800
PIE_HEIGHT = 500
PIE_OUTER_RADIUS = 200
PIE_INNER_RADIUS = 30
PIE_LABEL_MAX_LENGTH = 30
PIE_LABEL_ELLIPSIS = "..."

BAR_PALETTE = ("#7E57C2", "#3F51B5", "#039BE5", "#009688", "#43A047", "#827717")
PIE_PALETTE = ("#F8BBD0", "#D1C4E9", "#C5CAE9", "#BBDEFB", "#80DEEA", "#A5D6A7")

# Output filenames
BAR_CHART_FILE = "category_bar_chart.png"
PIE_CHART_FILE = "category_pie_chart.png"


class ChartType(str, Enum):
    """Chart identifiers for registry-based rendering."""
    BAR = "category_bar"
    PIE = "category_pie"


class MissingCategoryPolicy(str, Enum):
    """What the aggregator does with records that carry no category value."""
    DROP = "drop"
    BUCKET = "bucket"
