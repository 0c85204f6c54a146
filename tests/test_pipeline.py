import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from load_data import SourceData
from redlining_analysis import render_outputs, run_pipeline
from aggregation import add_count_bins
from reporting import format_table, plot_bird_choropleth, plot_redlining_map


@pytest.fixture
def sources(blocks, districts, birds):
    # districts arrive in a geographic CRS, as the Mapping Inequality GeoJSON does
    return SourceData(ej_blocks=blocks, districts=districts.to_crs(4326), birds=birds)


def test_pipeline_three_grades(sources):
    results = run_pipeline(sources, epsg=3310, year=2022)

    table = results.ej_grade_percent
    assert list(table["grade"]) == ["A", "B", "C"]
    assert table["grade_percent"].round(1).tolist() == [33.3, 33.3, 33.3]
    assert table["grade_percent"].sum() == pytest.approx(100, abs=0.01)

    assert results.validity.all_valid
    assert results.districts.crs.to_epsg() == 3310
    assert results.ej_blocks.crs.to_epsg() == 3310


def test_pipeline_means_and_birds(sources):
    results = run_pipeline(sources, epsg=3310, year=2022)

    means = results.ej_grade_means.set_index("grade")
    assert means.loc["B", "PM25"] == pytest.approx(12.0)

    assert results.bird_grade_percent["grade"].tolist() == ["A", "C"]
    totals = results.bird_grade_totals.set_index("grade")["n_observations"]
    assert totals.to_dict() == {"A": 2, "C": 1, "NA": 1}

    assert results.districts["n_birds"].tolist() == [2, 0, 1]
    assert results.districts["bird_bin"].tolist() == ["0–50", "0–50", "0–50"]


def test_pipeline_does_not_mutate_inputs(sources):
    before = list(sources.districts.columns)
    run_pipeline(sources, epsg=3310, year=2022)
    assert list(sources.districts.columns) == before


def test_pipeline_unknown_county(sources):
    with pytest.raises(ValueError):
        run_pipeline(sources, epsg=3310, county="Nowhere County")


def test_render_outputs(tmp_path, sources):
    results = run_pipeline(sources, epsg=3310, year=2022)
    render_outputs(results, out_dir=tmp_path)

    expected = [
        "ej_grade_percent.csv", "ej_grade_means.csv", "bird_grade_percent.csv",
        "bird_grade_totals.csv", "ej_grade_percent_table.png", "holc_grades_map.png",
        "bird_count_map.png", "ej_indicators_by_grade.png", "bird_observations_by_grade.png",
    ]
    for name in expected:
        assert (tmp_path / name).exists(), name

    saved = pd.read_csv(tmp_path / "bird_grade_totals.csv")
    assert saved["n_observations"].sum() == 4


def test_format_table():
    df = pd.DataFrame({"grade": ["A"], "count": [3], "grade_percent": [100 / 3], "PM25": [10.456]})
    shown = format_table(df)
    assert shown.iloc[0].tolist() == ["A", "3", "33.3%", "10.46"]


def test_maps_draw_ungraded_and_overflow_districts(tmp_path, sources):
    results = run_pipeline(sources, epsg=3310, year=2022)
    extra = gpd.GeoDataFrame(
        {"grade": [None], "n_birds": [400]},
        geometry=[box(600, 0, 700, 100)],
        crs=results.districts.crs,
    )
    districts = gpd.GeoDataFrame(
        pd.concat([results.districts.drop(columns="bird_bin"), extra], ignore_index=True),
        crs=results.districts.crs,
    )
    districts = add_count_bins(districts)
    assert pd.isna(districts["bird_bin"].iloc[-1])
    assert pd.isna(districts["grade"].iloc[-1])

    plot_redlining_map(districts, results.ej_blocks, tmp_path / "grades.png")
    plot_bird_choropleth(districts, tmp_path / "birds.png", year=2022)

    assert (tmp_path / "grades.png").exists()
    assert (tmp_path / "birds.png").exists()
