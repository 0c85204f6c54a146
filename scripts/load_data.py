"""
Data loading for the redlining analysis.
Reads EJScreen block groups, HOLC districts and GBIF bird observations as-is.
"""

from collections import namedtuple
from pathlib import Path

import geopandas as gpd

from config import (
    EJSCREEN_PATH, EJSCREEN_LAYER, REDLINING_PATH, BIRDS_PATH,
    COUNTY_COL, DEFAULT_COUNTY,
)


SourceData = namedtuple("SourceData", ["ej_blocks", "districts", "birds"])


class DataLoadError(IOError):
    """A source exists but could not be read as a geometry collection."""


def read_layer(path, layer=None, description="layer"):
    """Read one geometry collection, keeping its CRS and attributes untouched."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{description} not found: {path}")

    kwargs = {"layer": layer} if layer is not None else {}
    try:
        gdf = gpd.read_file(path, **kwargs)
    except Exception as e:
        raise DataLoadError(f"Could not read {description} from {path}: {e}") from e

    if gdf.crs is None:
        raise DataLoadError(f"{description} at {path} has no coordinate reference system")

    print(f"Loaded {len(gdf)} features from {path.name} ({gdf.crs.to_string()})")
    return gdf


def load_ej_blocks(path=EJSCREEN_PATH, layer=EJSCREEN_LAYER):
    """Load EJScreen block-group indicators (national geodatabase)."""
    return read_layer(path, layer=layer, description="EJScreen geodatabase")


def load_redlining_districts(path=REDLINING_PATH):
    """Load HOLC redlining district polygons with their grade field."""
    return read_layer(path, description="HOLC redlining districts")


def load_bird_observations(path=BIRDS_PATH):
    """Load GBIF bird observation points."""
    return read_layer(path, description="GBIF bird observations")


def load_all(ej_path=EJSCREEN_PATH, districts_path=REDLINING_PATH,
             birds_path=BIRDS_PATH, ej_layer=EJSCREEN_LAYER):
    """Load the three sources; any failure aborts."""
    return SourceData(
        ej_blocks=load_ej_blocks(ej_path, layer=ej_layer),
        districts=load_redlining_districts(districts_path),
        birds=load_bird_observations(birds_path),
    )


def select_county(blocks, county=DEFAULT_COUNTY, county_col=COUNTY_COL):
    """Subset block groups to a single county. Returns a new GeoDataFrame."""
    if county_col not in blocks.columns:
        raise ValueError(f"Missing county column: {county_col}")

    subset = blocks[blocks[county_col] == county].copy()
    if len(subset) == 0:
        raise ValueError(f"No block groups found for county '{county}'")

    print(f"Selected {len(subset)} block groups in {county}")
    return subset
