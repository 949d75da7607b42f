# tests/test_assembler.py
import httpx
import pandas as pd
import pytest

from conftest import Recorder, census_payload, census_row, geojson_bytes
from geo_insights.services.acs.assembler import DataAssembler
from geo_insights.services.acs.errors import (
    EmptyResultError,
    FieldSpecError,
    ScopeResolutionError,
    UpstreamUnavailableError,
)
from geo_insights.services.acs.fields import DEFAULT_FIELD_SPEC, DERIVED_FIELDS, ESTIMATE_FIELDS
from geo_insights.services.acs.geometry import AcsGeometryService
from geo_insights.services.acs.scope import Scope
from geo_insights.services.acs.survey import AcsSurveyService


def make_assembler(recorder):
    transport = httpx.MockTransport(recorder)
    return DataAssembler(
        survey_service=AcsSurveyService(year=2022, api_key="", transport=transport),
        geo_service=AcsGeometryService(year=2022, transport=transport),
    )


async def test_fetch_returns_raw_naming(county_rows):
    recorder = Recorder(data=census_payload(county_rows))
    table = await make_assembler(recorder).fetch(Scope.nationwide(), DEFAULT_FIELD_SPEC)

    assert "housing_units_totalE" in table.columns
    assert "housing_units_totalM" in table.columns
    assert table.geometry.isna().all()
    # Sem geometria pedida, só a chamada de dados
    assert len(recorder.requests) == 1


async def test_assemble_end_to_end(county_rows):
    # San Francisco (06075) sem geometria na malha: left join mantém a linha
    recorder = Recorder(data=census_payload(county_rows), boundaries=geojson_bytes(["06001", "48301"]))
    table = await make_assembler(recorder).assemble(Scope.nationwide(), DEFAULT_FIELD_SPEC, with_geometry=True)

    assert len(table) == 3
    for name in ESTIMATE_FIELDS + DERIVED_FIELDS:
        assert name in table.columns
    assert table.crs.to_epsg() == 4326

    rows = table.set_index("unit_id")
    assert rows.loc["06001", "new_construction_share"] == pytest.approx(0.2)
    assert rows.loc["06001", "recent_movein_share"] == pytest.approx(8.0)
    assert pd.isna(rows.loc["48301", "new_construction_share"])
    assert pd.isna(rows.loc["06075", "recent_movein_share"])
    assert rows.loc["06075", "new_construction_share"] == pytest.approx(5.0)
    assert rows.loc["06001", "geometry"] is not None
    assert rows.loc["06075", "geometry"] is None


async def test_empty_scope_is_flagged_not_a_scope_error():
    recorder = Recorder(data=None)
    scope = Scope.tracts("California", ["Alameda"])
    with pytest.raises(EmptyResultError) as excinfo:
        await make_assembler(recorder).assemble(scope, DEFAULT_FIELD_SPEC, with_geometry=True)

    assert not isinstance(excinfo.value, ScopeResolutionError)
    assert excinfo.value.scope == scope
    empty = excinfo.value.table
    assert empty.empty
    assert set(DERIVED_FIELDS) <= set(empty.columns)
    # Nada de malha para escopo sem unidades
    assert all(r.url.host == "api.census.gov" for r in recorder.requests)


async def test_header_only_payload_is_empty():
    recorder = Recorder(data=census_payload([]))
    with pytest.raises(EmptyResultError):
        await make_assembler(recorder).assemble(Scope.nationwide(), DEFAULT_FIELD_SPEC)


async def test_invalid_field_spec_fails_before_network():
    recorder = Recorder()
    spec = dict(DEFAULT_FIELD_SPEC)
    spec.pop("median_contract_rent")
    with pytest.raises(FieldSpecError):
        await make_assembler(recorder).assemble(Scope.nationwide(), spec)
    assert recorder.requests == []


async def test_custom_field_spec_is_used(county_rows):
    spec = {name: f"{var}E" for name, var in DEFAULT_FIELD_SPEC.items()}
    recorder = Recorder(data=census_payload(county_rows))
    table = await make_assembler(recorder).assemble(Scope.nationwide(), spec)
    assert len(table) == 3
    assert "B25058_001E" in recorder.requests[0].url.params["get"]


async def test_assemble_many_keeps_order(county_rows):
    tract_rows = [census_row("Census Tract 1", {}, county="001", tract="000100")]

    def handler(request):
        if request.url.params.get("get") == "NAME":
            return Recorder()(request)
        if request.url.params.get("for") == "tract:*":
            return httpx.Response(200, json=census_payload(tract_rows, level="tract"))
        return httpx.Response(200, json=census_payload(county_rows))

    assembler = make_assembler(handler)
    nation, metro = await assembler.assemble_many([
        (Scope.nationwide(), DEFAULT_FIELD_SPEC, False),
        (Scope.tracts("CA", ["Alameda"]), DEFAULT_FIELD_SPEC, False),
    ])
    assert len(nation) == 3
    assert list(metro["unit_id"]) == ["06001000100"]


async def test_assemble_many_keeps_tables_when_one_scope_is_empty(county_rows):
    def handler(request):
        if request.url.params.get("get") == "NAME":
            return Recorder()(request)
        if request.url.params.get("for") == "tract:*":
            return httpx.Response(204)
        return httpx.Response(200, json=census_payload(county_rows))

    nation, metro = await make_assembler(handler).assemble_many([
        (Scope.nationwide(), DEFAULT_FIELD_SPEC, False),
        (Scope.tracts("CA", ["Alameda"]), DEFAULT_FIELD_SPEC, False),
    ])
    assert len(nation) == 3
    assert metro.empty
    assert set(DERIVED_FIELDS) <= set(metro.columns)


async def test_assemble_many_raises_after_every_scope_finishes(county_rows):
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.params.get("get") == "NAME":
            return Recorder()(request)
        if request.url.params.get("for") == "tract:*":
            return httpx.Response(503)
        return httpx.Response(200, json=census_payload(county_rows))

    with pytest.raises(UpstreamUnavailableError):
        await make_assembler(handler).assemble_many([
            (Scope.tracts("CA", ["Alameda"]), DEFAULT_FIELD_SPEC, False),
            (Scope.nationwide(), DEFAULT_FIELD_SPEC, False),
        ])
    assert any(r.url.params.get("for") == "county:*" for r in seen)
