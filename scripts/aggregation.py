"""
Grade-level aggregation of joined records.
Percentages, null-safe indicator means, per-district point counts and
the fixed bins used by the bird-count choropleth.
"""

from enum import Enum

import numpy as np
import pandas as pd

from config import (
    GRADE_COL, GRADES, MISSING_GRADE_LABEL, EJ_INDICATORS, YEAR_COL,
    BIRD_COUNT_COL, BIRD_BIN_COL, BIRD_COUNT_BREAKS,
)
from spatial_alignment import assert_same_crs


class PercentBasis(Enum):
    """Denominator used when turning grade counts into percentages."""

    # Size of the left collection before the join (e.g. all county block groups)
    POPULATION = "population"
    # Number of joined rows that found a district
    MATCHED = "matched"


def _grade_order(grades):
    known = [g for g in GRADES if g in set(grades)]
    others = sorted(g for g in set(grades) if g not in GRADES)
    return known + others


def _matched_rows(joined, grade_col):
    if grade_col not in joined.columns:
        raise ValueError(f"Missing grade column: {grade_col}")
    return joined[joined[grade_col].notna()]


# ============================================================================
# 1. PERCENTAGES
# ============================================================================

def grade_percentages(joined, basis, population=None, grade_col=GRADE_COL):
    """
    Count joined rows per grade and express them as a percentage.

    POPULATION divides by `population`, the row count of the left collection
    before the join. MATCHED divides by the number of rows with a grade.
    Grades with no rows are left out of the table.
    """
    matched = _matched_rows(joined, grade_col)

    if basis is PercentBasis.POPULATION:
        if population is None or population <= 0:
            raise ValueError("POPULATION basis needs the pre-join row count as `population`")
        denominator = population
    elif basis is PercentBasis.MATCHED:
        denominator = len(matched)
    else:
        raise ValueError(f"Unknown percent basis: {basis}")

    counts = matched.groupby(grade_col, observed=True).size()
    counts = counts[counts > 0]
    order = _grade_order(counts.index)

    table = pd.DataFrame({
        grade_col: order,
        "count": [int(counts[g]) for g in order],
    })
    if denominator == 0:
        table["grade_percent"] = np.nan
    else:
        table["grade_percent"] = table["count"] / denominator * 100
    return table


def mean_indicators_by_grade(joined, columns=EJ_INDICATORS, grade_col=GRADE_COL):
    """Mean of each indicator per grade; missing values are skipped, not zeroed."""
    missing = set(columns) - set(joined.columns)
    if missing:
        raise ValueError(f"Missing indicator columns: {missing}")

    matched = _matched_rows(joined, grade_col)
    means = matched.groupby(grade_col, observed=True)[list(columns)].mean()
    means = means.loc[_grade_order(means.index)]
    return means.reset_index()


# ============================================================================
# 2. BIRD OBSERVATIONS
# ============================================================================

def select_year(observations, year, year_col=YEAR_COL):
    """Observations recorded in a single year."""
    if year_col not in observations.columns:
        raise ValueError(f"Missing year column: {year_col}")
    return observations[observations[year_col] == year].copy()


def observation_percentages(joined, year=None, grade_col=GRADE_COL, year_col=YEAR_COL):
    """
    Share of observations per grade, out of the observations that fall
    inside a graded district (MATCHED basis).
    """
    if year is not None:
        joined = select_year(joined, year, year_col=year_col)
    return grade_percentages(joined, PercentBasis.MATCHED, grade_col=grade_col)


def observation_totals(joined, year=None, grade_col=GRADE_COL, year_col=YEAR_COL):
    """Raw observation counts per grade, with unmatched rows counted under 'NA'."""
    if year is not None:
        joined = select_year(joined, year, year_col=year_col)
    if grade_col not in joined.columns:
        raise ValueError(f"Missing grade column: {grade_col}")

    grades = joined[grade_col].astype(object).where(joined[grade_col].notna(), MISSING_GRADE_LABEL)
    counts = grades.value_counts()
    graded = [g for g in counts.index if g != MISSING_GRADE_LABEL]
    order = _grade_order(graded)
    if MISSING_GRADE_LABEL in counts.index:
        order.append(MISSING_GRADE_LABEL)

    return pd.DataFrame({
        grade_col: order,
        "n_observations": [int(counts[g]) for g in order],
    })


def count_points_per_district(districts, points, count_col=BIRD_COUNT_COL):
    """
    Number of points intersecting each district, as a new column on a copy
    of `districts`. Districts with no points get 0.
    """
    assert_same_crs(districts, points)

    counted = districts.copy()
    if len(points) == 0 or len(districts) == 0:
        counted[count_col] = 0
        return counted

    _, district_pos = districts.sindex.query(points.geometry, predicate="intersects")
    counted[count_col] = np.bincount(district_pos, minlength=len(districts)).astype(int)
    return counted


# ============================================================================
# 3. CHOROPLETH BINS
# ============================================================================

def bucket_labels(breaks=BIRD_COUNT_BREAKS):
    """Labels like '0–50' for [0, 51); the last bin includes its upper edge."""
    labels = []
    for i, (lo, hi) in enumerate(zip(breaks[:-1], breaks[1:])):
        upper = hi if i == len(breaks) - 2 else hi - 1
        labels.append(f"{lo:g}–{upper:g}")
    return labels


def bucket_counts(counts, breaks=BIRD_COUNT_BREAKS):
    """
    Classify counts into half-open bins [lo, hi); the last bin is closed.
    Values outside the breaks come back as missing.
    """
    breaks = list(breaks)
    if len(breaks) < 2 or any(b >= a for a, b in zip(breaks[1:], breaks[:-1])):
        raise ValueError(f"Breaks must be strictly increasing with at least two edges: {breaks}")

    index = counts.index if isinstance(counts, pd.Series) else None
    values = np.asarray(counts, dtype=float)

    codes = np.searchsorted(breaks, values, side="right") - 1
    codes = np.where(values == breaks[-1], len(breaks) - 2, codes)
    out_of_range = np.isnan(values) | (values < breaks[0]) | (values > breaks[-1])
    codes = np.where(out_of_range, -1, codes)

    bins = pd.Categorical.from_codes(codes, categories=bucket_labels(breaks), ordered=True)
    return pd.Series(bins, index=index)


def add_count_bins(districts, count_col=BIRD_COUNT_COL, bin_col=BIRD_BIN_COL,
                   breaks=BIRD_COUNT_BREAKS):
    """Copy of `districts` with a categorical bin column for mapping."""
    binned = districts.copy()
    binned[bin_col] = bucket_counts(binned[count_col], breaks=breaks)
    return binned
