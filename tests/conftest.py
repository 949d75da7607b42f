# tests/conftest.py
import json

import httpx
import matplotlib
import pytest

matplotlib.use("Agg")

from geo_insights.services.acs.fields import DEFAULT_FIELD_SPEC, ESTIMATE_FIELDS  # noqa: E402

CENSUS_HOST = "api.census.gov"
BOUNDARY_HOST = "www2.census.gov"


def census_header(level="county"):
    header = ["NAME"]
    for name in ESTIMATE_FIELDS:
        var = DEFAULT_FIELD_SPEC[name]
        header += [f"{var}E", f"{var}M"]
    header += ["state", "county"]
    if level == "tract":
        header.append("tract")
    return header


def census_row(name, values, state="06", county="001", tract=None, moe="12"):
    """values: nome lógico -> estimativa (string como a API devolve, ou None)."""
    row = [name]
    for field in ESTIMATE_FIELDS:
        est = values.get(field, "100")
        row += [est, moe]
    row += [state, county]
    if tract is not None:
        row.append(tract)
    return row


def census_payload(rows, level="county"):
    return [census_header(level)] + rows


def square(x, y, size=1.0):
    return {
        "type": "Polygon",
        "coordinates": [[[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]],
    }


def geojson_bytes(geoids):
    features = [
        {"type": "Feature", "properties": {"GEOID": geoid, "NAME": geoid}, "geometry": square(i, i)}
        for i, geoid in enumerate(geoids)
    ]
    return json.dumps({"type": "FeatureCollection", "features": features}).encode()


COUNTY_LOOKUP = [
    ["NAME", "state", "county"],
    ["Alameda County, California", "06", "001"],
    ["San Francisco County, California", "06", "075"],
    ["Los Angeles County, California", "06", "037"],
]


class Recorder:
    """Handler para httpx.MockTransport que guarda as requisições recebidas."""

    def __init__(self, data=None, boundaries=None, lookup=COUNTY_LOOKUP, status=200):
        self.data = data
        self.boundaries = boundaries
        self.lookup = lookup
        self.status = status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == BOUNDARY_HOST:
            return httpx.Response(200, content=self.boundaries or geojson_bytes([]))
        if request.url.params.get("get") == "NAME":
            return httpx.Response(200, json=self.lookup)
        if self.data is None:
            return httpx.Response(204)
        return httpx.Response(self.status, json=self.data)

    def data_requests(self):
        return [r for r in self.requests if r.url.host == CENSUS_HOST and r.url.params.get("get") != "NAME"]


@pytest.fixture
def county_rows():
    return [
        census_row("Alameda County, California", {
            "housing_units_total": "1000",
            "housing_units_built_2020_or_later": "2",
            "occupied_housing_units_total": "1000",
            "owner_occupied_moved_in_after_2021": "30",
            "renter_occupied_moved_in_after_2021": "50",
            "median_contract_rent": "1800",
        }, county="001"),
        census_row("Loving County, Texas", {
            "housing_units_total": "0",
            "occupied_housing_units_total": "0",
            "median_contract_rent": "-666666666",
        }, state="48", county="301"),
        census_row("San Francisco County, California", {
            "housing_units_total": "400",
            "housing_units_built_2020_or_later": "20",
            "occupied_housing_units_total": "380",
            "owner_occupied_moved_in_after_2021": None,
            "renter_occupied_moved_in_after_2021": "40",
            "median_contract_rent": "2100",
        }, county="075"),
    ]
