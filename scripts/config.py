"""
Shared settings for the Los Angeles redlining / EJ / biodiversity analysis.
"""

from pathlib import Path

# Project paths
script_dir = Path(__file__).parent
project_root = script_dir.parent
data_dir = project_root / "data"
output_dir = project_root / "outputs"

# ---------- Input sources ----------
EJSCREEN_PATH = data_dir / "ejscreen" / "EJSCREEN_2023_BG_StatePct_with_AS_CNMI_GU_VI.gdb"
EJSCREEN_LAYER = None      # first layer of the geodatabase
REDLINING_PATH = data_dir / "mapping-inequality" / "mapping-inequality-los-angeles.json"
BIRDS_PATH = data_dir / "gbif-birds-LA" / "gbif-birds-LA.shp"

# ---------- Spatial settings ----------
# California Albers (meters); every join runs in this CRS
ANALYSIS_EPSG = 3310
REPAIR_INVALID_GEOMETRIES = False

# ---------- Columns ----------
GRADE_COL = "grade"
GRADES = ["A", "B", "C", "D"]
MISSING_GRADE_LABEL = "NA"

COUNTY_COL = "CNTY_NAME"
DEFAULT_COUNTY = "Los Angeles County"

PM25_COL = "PM25"
LOW_INCOME_COL = "LOWINCPCT"
LIFE_EXPECTANCY_COL = "P_LIFEEXPPCT"
EJ_INDICATORS = [PM25_COL, LOW_INCOME_COL, LIFE_EXPECTANCY_COL]
EJ_INDICATOR_LABELS = {
    PM25_COL: "PM2.5 (ug/m3)",
    LOW_INCOME_COL: "Low income (%)",
    LIFE_EXPECTANCY_COL: "Low life expectancy (percentile)",
}

YEAR_COL = "year"

# ---------- Bird counts ----------
BIRD_YEAR = 2022
BIRD_COUNT_COL = "n_birds"
BIRD_BIN_COL = "bird_bin"
BIRD_COUNT_BREAKS = [0, 51, 151, 251, 350]

# HOLC map colours (green, blue, yellow, red as on the original survey maps)
GRADE_COLORS = {
    "A": "#76a865",
    "B": "#7cb5bd",
    "C": "#ffff00",
    "D": "#d9838d",
}
