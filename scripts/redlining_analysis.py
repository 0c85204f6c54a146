"""
Redlining, Environmental Justice and Biodiversity in Los Angeles County
Joins EJScreen block groups and GBIF bird observations to HOLC districts,
summarizes them by grade, and renders tables, maps and charts.
"""

from collections import namedtuple

from config import (
    output_dir, ANALYSIS_EPSG, DEFAULT_COUNTY, BIRD_YEAR, BIRD_COUNT_BREAKS,
    REPAIR_INVALID_GEOMETRIES,
)
from load_data import load_all, select_county
from spatial_alignment import (
    check_polygon_validity, repair_geometries, align_layers, assert_same_crs, join_grades,
)
from aggregation import (
    PercentBasis, grade_percentages, mean_indicators_by_grade, select_year,
    observation_percentages, observation_totals, count_points_per_district, add_count_bins,
)
import reporting


AnalysisResults = namedtuple("AnalysisResults", [
    "districts",            # HOLC districts with n_birds and bird_bin
    "ej_blocks",            # county block groups, projected
    "ej_grade_percent",     # grade -> % of county block groups
    "ej_grade_means",       # grade -> mean indicators
    "bird_grade_percent",   # grade -> % of graded observations in the year
    "bird_grade_totals",    # grade -> observation count, NA included
    "validity",             # ValidityReport for the districts
    "year",
])


def banner(title):
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


# ============================================================================
# 1. PIPELINE
# ============================================================================

def run_pipeline(sources, epsg=ANALYSIS_EPSG, county=DEFAULT_COUNTY, year=BIRD_YEAR,
                 breaks=BIRD_COUNT_BREAKS, repair=REPAIR_INVALID_GEOMETRIES):
    """
    Run alignment and aggregation on loaded sources. Returns AnalysisResults.
    Pass county=None to keep every block group, year=None to keep every year.
    """
    banner("CHECKING GEOMETRY VALIDITY")
    validity = check_polygon_validity(sources.districts)
    print(f"  HOLC districts: {validity.message}")
    districts = sources.districts
    if not validity.all_valid and repair:
        districts = repair_geometries(districts)

    ej_blocks = sources.ej_blocks
    if county is not None:
        ej_blocks = select_county(ej_blocks, county)

    banner(f"REPROJECTING TO EPSG:{epsg}")
    aligned = align_layers(epsg, districts=districts, ej_blocks=ej_blocks, birds=sources.birds)
    districts, ej_blocks, birds = aligned["districts"], aligned["ej_blocks"], aligned["birds"]
    assert_same_crs(ej_blocks, districts)
    assert_same_crs(birds, districts)

    banner("EJSCREEN INDICATORS BY HOLC GRADE")
    ej_joined = join_grades(ej_blocks, districts)
    ej_grade_percent = grade_percentages(ej_joined, PercentBasis.POPULATION,
                                         population=len(ej_blocks))
    ej_grade_means = mean_indicators_by_grade(ej_joined)
    print("\n  Share of block groups by grade:")
    print(ej_grade_percent.to_string(index=False))
    print("\n  Mean indicators by grade:")
    print(ej_grade_means.to_string(index=False))

    banner("BIRD OBSERVATIONS BY HOLC GRADE")
    birds_joined = join_grades(birds, districts)
    bird_grade_percent = observation_percentages(birds_joined, year=year)
    bird_grade_totals = observation_totals(birds_joined, year=year)
    print("\n  Share of observations by grade:")
    print(bird_grade_percent.to_string(index=False))
    print("\n  Observation totals by grade:")
    print(bird_grade_totals.to_string(index=False))

    year_birds = select_year(birds, year) if year is not None else birds
    districts = count_points_per_district(districts, year_birds)
    districts = add_count_bins(districts, breaks=breaks)

    return AnalysisResults(
        districts=districts,
        ej_blocks=ej_blocks,
        ej_grade_percent=ej_grade_percent,
        ej_grade_means=ej_grade_means,
        bird_grade_percent=bird_grade_percent,
        bird_grade_totals=bird_grade_totals,
        validity=validity,
        year=year,
    )


# ============================================================================
# 2. OUTPUTS
# ============================================================================

def render_outputs(results, out_dir=output_dir, breaks=BIRD_COUNT_BREAKS):
    """Write the four tables, two maps and two bar charts."""
    out_dir.mkdir(parents=True, exist_ok=True)

    banner("CREATING TABLES")
    tables = [
        (results.ej_grade_percent, "Share of Block Groups by HOLC Grade", "ej_grade_percent"),
        (results.ej_grade_means, "Mean EJScreen Indicators by HOLC Grade", "ej_grade_means"),
        (results.bird_grade_percent, "Share of Bird Observations by HOLC Grade",
         "bird_grade_percent"),
        (results.bird_grade_totals, "Bird Observations by HOLC Grade", "bird_grade_totals"),
    ]
    for df, title, stem in tables:
        reporting.save_table_csv(df, out_dir / f"{stem}.csv")
        reporting.create_summary_table(df, title, out_dir / f"{stem}_table.png")

    banner("CREATING MAPS")
    reporting.plot_redlining_map(results.districts, results.ej_blocks,
                                 out_dir / "holc_grades_map.png")
    reporting.plot_bird_choropleth(results.districts, out_dir / "bird_count_map.png",
                                   year=results.year, breaks=breaks)

    banner("CREATING CHARTS")
    reporting.plot_indicator_bars(results.ej_grade_means, out_dir / "ej_indicators_by_grade.png")
    reporting.plot_observation_bars(results.bird_grade_percent,
                                    out_dir / "bird_observations_by_grade.png",
                                    year=results.year)


# ============================================================================
# 3. MAIN EXECUTION
# ============================================================================

def main():
    """Main execution function."""
    banner("REDLINING, ENVIRONMENTAL JUSTICE AND BIODIVERSITY IN LOS ANGELES")

    banner("LOADING DATA")
    sources = load_all()

    results = run_pipeline(sources)
    render_outputs(results)

    banner("ANALYSIS COMPLETE")


if __name__ == "__main__":
    main()
