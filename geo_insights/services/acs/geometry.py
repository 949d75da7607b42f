# geo_insights/services/acs/geometry.py
import httpx
import geopandas as gpd
import pandas as pd
from io import BytesIO
import logging
from typing import Optional

from geo_insights.core.config import settings
from geo_insights.services.acs.errors import UpstreamUnavailableError
from geo_insights.services.acs.scope import Scope

logger = logging.getLogger(__name__)

class AcsGeometryService:
    """Responsável exclusivamente por buscar geometrias (arquivos cartográficos do Census)."""

    def __init__(
        self,
        year: Optional[int] = None,
        url_template: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.year = year or settings.ACS_YEAR
        self.url_template = url_template or settings.BOUNDARY_URL_TEMPLATE
        self.transport = transport
        self.timeout = timeout or settings.HTTP_TIMEOUT

    def boundary_url(self, scope: Scope) -> str:
        # Condados: um arquivo nacional. Setores: um arquivo por estado.
        if scope.level == "county":
            return self.url_template.format(year=self.year, area="us", level="county")
        return self.url_template.format(year=self.year, area=scope.state_fips(), level="tract")

    async def fetch_boundaries(self, scope: Scope) -> gpd.GeoDataFrame:
        """Retorna GeoDataFrame [unit_id, geometry] em EPSG:4326."""
        url = self.boundary_url(scope)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
            logger.info(f"🌍 Baixando malha: {url}")
            try:
                response = await client.get(url)
            except httpx.HTTPError as e:
                logger.error(f"Geometry Error: {e}")
                raise UpstreamUnavailableError(f"Falha ao baixar malha: {e}") from e

        if response.status_code != 200:
            logger.error(f"Geometry API Failed: {response.status_code}")
            raise UpstreamUnavailableError(f"Servidor de malhas respondeu {response.status_code}.")

        try:
            gdf = gpd.read_file(BytesIO(response.content))
        except Exception as e:
            logger.error(f"Erro ao ler malha: {e}")
            raise UpstreamUnavailableError(f"Malha ilegível: {e}") from e

        if gdf.empty:
            logger.warning("Malha vazia; unidades seguirão sem geometria.")
            return gpd.GeoDataFrame({"unit_id": pd.Series([], dtype=object)}, geometry=gpd.GeoSeries([], crs="EPSG:4326"))

        # Normaliza nome da coluna
        for col in ["GEOID", "GEOID20", "geoid"]:
            if col in gdf.columns:
                gdf = gdf.rename(columns={col: "unit_id"})
                break
        else:
            raise UpstreamUnavailableError("Malha sem coluna GEOID.")

        # Padronização de CRS (NAD83 -> WGS84)
        if gdf.crs is None:
            gdf = gdf.set_crs("EPSG:4326")
        elif gdf.crs != "EPSG:4326":
            gdf = gdf.to_crs("EPSG:4326")

        # Correção Topológica
        gdf["geometry"] = gdf["geometry"].buffer(0)
        gdf["unit_id"] = gdf["unit_id"].astype(str)

        return gdf[["unit_id", "geometry"]]
