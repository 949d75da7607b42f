# tests/test_plots.py
import geopandas as gpd
import matplotlib.pyplot as plt
import pytest
from shapely.geometry import box

from geo_insights.services.acs.errors import SchemaMismatchError
from geo_insights.services.analysis.plots import plot_choropleth, plot_scatter


@pytest.fixture
def table():
    return gpd.GeoDataFrame(
        {
            "unit_id": ["06001", "06075", "48301"],
            "new_construction_share": [0.2, 5.0, None],
            "median_contract_rent": [1800.0, 2100.0, None],
            "housing_units_total": [1000.0, 400.0, 0.0],
        },
        geometry=[box(-122.3, 37.6, -121.5, 37.9), None, box(-103.8, 31.6, -103.3, 32.0)],
        crs="EPSG:4326",
    )


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


def test_choropleth_skips_units_without_geometry(table):
    ax = plot_choropleth(table, "new_construction_share")
    assert ax.get_title() == "new_construction_share"
    assert len(ax.collections) >= 1


def test_choropleth_without_any_geometry(table):
    table = table.set_geometry(gpd.GeoSeries([None] * 3, crs="EPSG:4326"))
    ax = plot_choropleth(table, "new_construction_share")
    assert not ax.axison


def test_scatter_with_size_weights(table):
    ax = plot_scatter(table, "new_construction_share", "median_contract_rent", size="housing_units_total")
    [points] = ax.collections
    assert len(points.get_offsets()) == 2
    assert points.get_sizes().max() == pytest.approx(300.0)
    assert ax.get_xlabel() == "new_construction_share"


def test_unknown_column_is_rejected(table):
    with pytest.raises(SchemaMismatchError):
        plot_scatter(table, "new_construction_share", "vacancy_rate")
    with pytest.raises(SchemaMismatchError):
        plot_choropleth(table, "vacancy_rate")
