# geo_insights/services/acs/assembler.py
import asyncio
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import geopandas as gpd

from geo_insights.services.acs.derivation import derive, normalize
from geo_insights.services.acs.errors import EmptyResultError
from geo_insights.services.acs.fields import DEFAULT_FIELD_SPEC, validate_field_spec
from geo_insights.services.acs.geometry import AcsGeometryService
from geo_insights.services.acs.scope import Scope
from geo_insights.services.acs.survey import AcsSurveyService

logger = logging.getLogger(__name__)

class DataAssembler:
    """
    Pipeline de três estágios: fetch -> normalize -> derive.
    Cada estágio devolve uma tabela nova; nada é guardado entre chamadas.
    """

    normalize = staticmethod(normalize)
    derive = staticmethod(derive)

    def __init__(
        self,
        survey_service: Optional[AcsSurveyService] = None,
        geo_service: Optional[AcsGeometryService] = None,
    ):
        self.survey_service = survey_service or AcsSurveyService()
        self.geo_service = geo_service or AcsGeometryService(year=self.survey_service.year)

    async def fetch(
        self,
        scope: Scope,
        field_spec: Mapping[str, str] = DEFAULT_FIELD_SPEC,
        with_geometry: bool = False,
    ) -> gpd.GeoDataFrame:
        """Tabela bruta (<campo>E / <campo>M), com geometria opcional."""
        spec = validate_field_spec(field_spec)
        logger.info(f"🔄 Buscando {scope.label}...")

        df = await self.survey_service.fetch_units(scope, spec)

        if df.empty:
            logger.warning(f"⚠️ Nenhuma unidade para {scope.label}.")
            empty = gpd.GeoDataFrame(df, geometry=gpd.GeoSeries([], index=df.index, crs="EPSG:4326"))
            raise EmptyResultError(scope, empty)

        if with_geometry:
            boundaries = await self.geo_service.fetch_boundaries(scope)
            logger.info(f"Merging: {len(df)} unidades + {len(boundaries)} geometrias.")
            merged = df.merge(boundaries, on="unit_id", how="left")
            gdf = gpd.GeoDataFrame(merged, geometry="geometry", crs="EPSG:4326")
            missing = int(gdf.geometry.isna().sum())
            if missing:
                logger.warning(f"{missing} unidades sem geometria.")
        else:
            gdf = gpd.GeoDataFrame(df, geometry=gpd.GeoSeries([None] * len(df), index=df.index, crs="EPSG:4326"))

        return gdf

    async def assemble(
        self,
        scope: Scope,
        field_spec: Mapping[str, str] = DEFAULT_FIELD_SPEC,
        with_geometry: bool = False,
    ) -> gpd.GeoDataFrame:
        """derive(normalize(fetch(...))). Único ponto de entrada para mapas e estatística."""
        try:
            raw = await self.fetch(scope, field_spec, with_geometry)
        except EmptyResultError as e:
            # Mesmo vazio, o chamador recebe a tabela já no formato final
            raise EmptyResultError(scope, derive(normalize(e.table))) from e

        table = derive(normalize(raw))
        logger.info(f"✅ {scope.label}: {len(table)} unidades montadas.")
        return table

    async def assemble_many(
        self,
        requests: Iterable[Tuple[Scope, Dict[str, str], bool]],
    ) -> List[gpd.GeoDataFrame]:
        """
        Roda consultas independentes em paralelo. Resultado na ordem dos pedidos.
        Escopo vazio não derruba o lote: a posição recebe a tabela vazia já derivada.
        Outros erros só sobem depois que todas as consultas terminaram.
        """
        results = await asyncio.gather(
            *(self.assemble(scope, spec, with_geometry) for scope, spec, with_geometry in requests),
            return_exceptions=True,
        )

        tables, failures = [], []
        for result in results:
            if isinstance(result, EmptyResultError):
                tables.append(result.table)
            elif isinstance(result, BaseException):
                failures.append(result)
                tables.append(None)
            else:
                tables.append(result)

        if failures:
            for extra in failures[1:]:
                logger.error(f"Falha adicional no lote: {extra!r}")
            raise failures[0]
        return tables
