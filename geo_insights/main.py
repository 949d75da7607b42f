# geo_insights/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Response, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from geo_insights.core.config import settings
from geo_insights.core.database import get_db
from geo_insights.core.init_db import init_tables
from geo_insights.api.deps import get_assembler, get_scope
from geo_insights.repositories.geo_unit_repository import GeoUnitRepository
from geo_insights.schemas.geo import FeatureCollection
from geo_insights.services.acs.assembler import DataAssembler
from geo_insights.services.acs.errors import (
    EmptyResultError,
    FieldSpecError,
    GeoInsightsError,
    InsufficientDataError,
    SchemaMismatchError,
    ScopeResolutionError,
    UpstreamUnavailableError,
)
from geo_insights.services.acs.scope import Scope
from geo_insights.services.analysis.statistics import (
    CorrelationResult,
    RegressionResult,
    correlate,
    fit_linear,
)

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

EMPTY_COLLECTION = '{"type": "FeatureCollection", "features": []}'

@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.INIT_DB_ON_STARTUP:
        await init_tables()
    yield

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

def to_http_error(e: GeoInsightsError) -> HTTPException:
    """Traduz a taxonomia de erros do pipeline para status HTTP."""
    if isinstance(e, ScopeResolutionError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (FieldSpecError, SchemaMismatchError, InsufficientDataError)):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, UpstreamUnavailableError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))

async def _assemble_or_fail(assembler: DataAssembler, scope: Scope, with_geometry: bool = False):
    try:
        return await assembler.assemble(scope, with_geometry=with_geometry)
    except EmptyResultError:
        raise HTTPException(status_code=422, detail=f"Sem dados para {scope.label}.")
    except GeoInsightsError as e:
        raise to_http_error(e)

@app.get("/")
async def health_check():
    return {"status": "ok", "message": "Geo-Insights API is running"}

@app.get("/units/preview")
async def preview_units(
    with_geometry: bool = False,
    scope: Scope = Depends(get_scope),
    assembler: DataAssembler = Depends(get_assembler),
):
    """Tabela montada (estimativas + taxas derivadas) como GeoJSON."""
    try:
        table = await assembler.assemble(scope, with_geometry=with_geometry)
    except EmptyResultError:
        # Escopo válido sem unidades não é erro
        return Response(content=EMPTY_COLLECTION, media_type="application/json")
    except GeoInsightsError as e:
        raise to_http_error(e)
    return Response(content=table.to_json(na="null"), media_type="application/json")

@app.post("/etl/sync")
async def sync_units(
    scope: Scope = Depends(get_scope),
    assembler: DataAssembler = Depends(get_assembler),
    db: AsyncSession = Depends(get_db),
):
    """
    Dispara o processo de Extração e Carga no Banco de Dados.
    """
    logger.info(f"🚀 Iniciando ETL para {scope.label}...")
    table = await _assemble_or_fail(assembler, scope, with_geometry=True)
    repo = GeoUnitRepository(db)
    imported = await repo.save_units(table, scope.level)
    return {"status": "success", "scope": scope.label, "imported": imported}

@app.get("/map", response_model=FeatureCollection)
async def get_map_data(db: AsyncSession = Depends(get_db)):
    """Retorna todas as unidades já importadas."""
    repo = GeoUnitRepository(db)
    features = await repo.get_all_features()
    return {"type": "FeatureCollection", "features": features}

@app.get("/analysis/correlation", response_model=CorrelationResult)
async def correlation(
    x: str = "new_construction_share",
    y: str = "median_contract_rent",
    scope: Scope = Depends(get_scope),
    assembler: DataAssembler = Depends(get_assembler),
):
    table = await _assemble_or_fail(assembler, scope)
    try:
        return correlate(table, x, y)
    except GeoInsightsError as e:
        raise to_http_error(e)

@app.get("/analysis/regression", response_model=RegressionResult)
async def regression(
    dependent: str = "median_contract_rent",
    independent: str = "new_construction_share",
    scope: Scope = Depends(get_scope),
    assembler: DataAssembler = Depends(get_assembler),
):
    table = await _assemble_or_fail(assembler, scope)
    try:
        return fit_linear(table, dependent, independent)
    except GeoInsightsError as e:
        raise to_http_error(e)
