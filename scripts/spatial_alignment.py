"""
Spatial alignment: geometry validity, reprojection and grade joins.
Every operation takes an explicit EPSG code or checks CRS equality;
nothing relies on a default coordinate system.
"""

from collections import namedtuple

import geopandas as gpd
from pyproj import CRS

from config import GRADE_COL


ValidityReport = namedtuple(
    "ValidityReport", ["all_valid", "n_invalid", "n_total", "n_missing", "message"]
)


class CRSMismatchError(ValueError):
    """Two collections in one spatial operation use different CRS."""

    def __init__(self, left_crs, right_crs):
        self.left_crs = left_crs
        self.right_crs = right_crs
        super().__init__(
            f"CRS mismatch: left is {_crs_label(left_crs)}, right is {_crs_label(right_crs)}"
        )


def _crs_label(crs):
    if crs is None:
        return "undefined"
    epsg = crs.to_epsg()
    return f"EPSG:{epsg}" if epsg is not None else crs.to_string()


# ============================================================================
# 1. GEOMETRY VALIDITY
# ============================================================================

def check_polygon_validity(gdf):
    """
    Check OGC validity of every non-missing geometry. Invalid geometries are
    reported, not repaired. Features without a geometry are counted apart.
    """
    present = gdf.geometry.notna() & ~gdf.geometry.is_empty
    n_missing = int((~present).sum())
    valid = gdf.geometry[present].is_valid
    n_total = len(valid)
    n_invalid = int((~valid).sum())
    all_valid = n_invalid == 0

    if all_valid:
        message = f"All {n_total} geometries are valid"
    else:
        message = f"{n_invalid} of {n_total} geometries are invalid"
    if n_missing > 0:
        message += f"; {n_missing} features have no geometry"

    return ValidityReport(all_valid, n_invalid, n_total, n_missing, message)


def repair_geometries(gdf):
    """Return a copy with invalid geometries passed through shapely's make_valid."""
    repaired = gdf.copy()
    invalid_mask = ~repaired.geometry.is_valid & repaired.geometry.notna()
    n_fixed = int(invalid_mask.sum())

    if n_fixed > 0:
        geom_col = repaired.geometry.name
        # make_valid leaves valid geometries unchanged
        repaired[geom_col] = repaired.geometry.make_valid()

    print(f"  Repaired {n_fixed} invalid geometries")
    return repaired


# ============================================================================
# 2. REPROJECTION
# ============================================================================

def reproject(gdf, epsg):
    """
    Transform a collection to the given EPSG code.
    The transform is always applied, even when the CRS already matches.
    """
    if gdf.crs is None:
        raise CRSMismatchError(None, CRS.from_epsg(epsg))

    projected = gdf.to_crs(epsg=epsg)
    if projected.crs.to_epsg() != epsg:
        raise CRSMismatchError(projected.crs, CRS.from_epsg(epsg))
    return projected


def align_layers(epsg, **layers):
    """Reproject several named collections to one EPSG code."""
    aligned = {}
    for name, gdf in layers.items():
        aligned[name] = reproject(gdf, epsg)
        print(f"  {name}: {_crs_label(gdf.crs)} -> EPSG:{epsg}")
    return aligned


def assert_same_crs(left, right):
    """Raise CRSMismatchError unless both collections share one defined CRS."""
    if left.crs is None or right.crs is None or left.crs != right.crs:
        raise CRSMismatchError(left.crs, right.crs)


# ============================================================================
# 3. SPATIAL JOIN
# ============================================================================

def join_grades(left, districts, grade_col=GRADE_COL):
    """
    Left join HOLC grades onto `left` with the intersects predicate.

    Unmatched rows keep a null grade. A row intersecting several districts
    appears once per district. sjoin queries an STRtree built over the
    districts, so the join is not all-pairs.
    """
    assert_same_crs(left, districts)

    if grade_col not in districts.columns:
        raise ValueError(f"Missing grade column in districts: {grade_col}")
    if grade_col in left.columns:
        raise ValueError(f"Left collection already has a '{grade_col}' column")

    right = districts[[grade_col, districts.geometry.name]]
    joined = gpd.sjoin(left, right, how="left", predicate="intersects")
    joined = joined.drop(columns=["index_right"], errors="ignore")

    n_unmatched = int(joined[grade_col].isna().sum())
    print(f"  Joined {len(left)} features -> {len(joined)} rows ({n_unmatched} without a district)")
    return joined
