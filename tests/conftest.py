import geopandas as gpd
import pytest
from shapely.geometry import Point, box

import matplotlib
matplotlib.use('Agg')

EPSG = 3310


@pytest.fixture
def districts():
    """Three adjacent-but-separated HOLC districts, graded A, B, C."""
    return gpd.GeoDataFrame(
        {"grade": ["A", "B", "C"]},
        geometry=[box(0, 0, 100, 100), box(200, 0, 300, 100), box(400, 0, 500, 100)],
        crs=f"EPSG:{EPSG}",
    )


@pytest.fixture
def blocks():
    """One block group inside each district."""
    return gpd.GeoDataFrame(
        {
            "CNTY_NAME": ["Los Angeles County"] * 3,
            "PM25": [10.0, 12.0, 14.0],
            "LOWINCPCT": [0.2, 0.4, 0.6],
            "P_LIFEEXPPCT": [30.0, 50.0, 70.0],
        },
        geometry=[box(10, 10, 90, 90), box(210, 10, 290, 90), box(410, 10, 490, 90)],
        crs=f"EPSG:{EPSG}",
    )


@pytest.fixture
def birds():
    """Points: two in A, one in C, one outside every district, one from an earlier year."""
    return gpd.GeoDataFrame(
        {
            "year": [2022, 2022, 2022, 2022, 2021],
            "species": ["Corvus", "Sturnus", "Passer", "Columba", "Zenaida"],
        },
        geometry=[Point(50, 50), Point(60, 60), Point(450, 50), Point(1000, 1000), Point(250, 50)],
        crs=f"EPSG:{EPSG}",
    )
