# geo_insights/services/acs/survey.py
import httpx
import pandas as pd
import logging
from typing import Dict, List, Optional, Tuple

from geo_insights.core.config import settings
from geo_insights.services.acs.errors import (
    FieldSpecError,
    ScopeResolutionError,
    UpstreamUnavailableError,
)
from geo_insights.services.acs.fields import (
    ESTIMATE_FIELDS,
    ESTIMATE_SUFFIX,
    MARGIN_SUFFIX,
    estimate_column,
    margin_column,
)
from geo_insights.services.acs.scope import Scope, normalize_county_name

logger = logging.getLogger(__name__)

GEO_COLUMNS = ("state", "county", "tract")


class AcsSurveyService:
    """Responsável exclusivamente por buscar estimativas na Census Data API (ACS)."""

    def __init__(
        self,
        year: Optional[int] = None,
        dataset: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.year = year or settings.ACS_YEAR
        self.dataset = dataset or settings.ACS_DATASET
        self.api_key = api_key if api_key is not None else settings.CENSUS_API_KEY
        self.transport = transport
        self.timeout = timeout or settings.HTTP_TIMEOUT

    @property
    def data_url(self) -> str:
        return f"{settings.CENSUS_API_URL}/{self.year}/{self.dataset}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _query(self, client: httpx.AsyncClient, params: List[Tuple[str, str]]) -> List[List[str]]:
        """
        Executa uma consulta e devolve a matriz [cabeçalho, *linhas].
        204 (No Content) = escopo válido sem linhas -> lista vazia.
        """
        if self.api_key:
            params = params + [("key", self.api_key)]

        try:
            response = await client.get(self.data_url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Census API indisponível: {e}")
            raise UpstreamUnavailableError(f"Falha de conexão com a Census API: {e}") from e

        if response.status_code == 204:
            return []

        if response.status_code == 400:
            # A API responde texto puro: "error: unknown variable 'B99999_001E'"
            message = response.text.strip()
            lowered = message.lower()
            if "unknown variable" in lowered:
                raise FieldSpecError(message)
            if "geography" in lowered or "unknown predicate" in lowered:
                raise ScopeResolutionError(message)
            logger.error(f"Census API rejeitou a consulta: {message}")
            raise UpstreamUnavailableError(message)

        if response.status_code != 200:
            logger.error(f"Census API Failed: {response.status_code}")
            raise UpstreamUnavailableError(f"Census API respondeu {response.status_code}.")

        try:
            data = response.json()
        except ValueError as e:
            # Chave inválida costuma voltar como HTML
            raise UpstreamUnavailableError("Resposta da Census API não é JSON.") from e

        if not isinstance(data, list) or not data:
            return []
        return data

    async def resolve_counties(self, client: httpx.AsyncClient, state_fips: str, names) -> List[str]:
        """Nomes de condados -> códigos FIPS de 3 dígitos (na ordem pedida)."""
        logger.info(f"🔍 Resolvendo condados {list(names)} no estado {state_fips}...")
        data = await self._query(client, [("get", "NAME"), ("for", "county:*"), ("in", f"state:{state_fips}")])
        if not data:
            raise ScopeResolutionError(f"Nenhum condado encontrado para o estado {state_fips}.")

        header, rows = data[0], data[1:]
        name_idx, county_idx = header.index("NAME"), header.index("county")
        lookup = {normalize_county_name(row[name_idx]): row[county_idx] for row in rows}

        codes, missing = [], []
        for name in names:
            code = lookup.get(normalize_county_name(name))
            if code is None:
                missing.append(name)
            elif code not in codes:
                codes.append(code)

        if missing:
            raise ScopeResolutionError(f"Condados não encontrados no estado {state_fips}: {missing}")
        return codes

    async def fetch_units(self, scope: Scope, field_spec: Dict[str, str]) -> pd.DataFrame:
        """
        Uma linha por unidade geográfica: unit_id, display_name,
        <campo>E (estimativa) e <campo>M (margem de erro).
        """
        variables = []
        renames = {"NAME": "display_name"}
        for name in ESTIMATE_FIELDS:
            var = field_spec[name]
            variables += [f"{var}{ESTIMATE_SUFFIX}", f"{var}{MARGIN_SUFFIX}"]
            renames[f"{var}{ESTIMATE_SUFFIX}"] = estimate_column(name)
            renames[f"{var}{MARGIN_SUFFIX}"] = margin_column(name)

        params = [("get", ",".join(["NAME"] + variables))]

        async with self._client() as client:
            if scope.level == "county":
                params.append(("for", "county:*"))
            else:
                state_fips = scope.state_fips()
                county_codes = await self.resolve_counties(client, state_fips, scope.counties)
                params += [("for", "tract:*"), ("in", f"state:{state_fips}"), ("in", f"county:{','.join(county_codes)}")]

            logger.info(f"Downloading ACS {self.year} ({scope.label}): {self.data_url}")
            data = await self._query(client, params)

        return self._to_frame(data, renames)

    def _to_frame(self, data: List[List[str]], renames: Dict[str, str]) -> pd.DataFrame:
        value_columns = [c for c in renames.values() if c != "display_name"]
        columns = ["unit_id", "display_name"] + value_columns
        if len(data) < 2:
            return pd.DataFrame(columns=columns)

        df = pd.DataFrame(data[1:], columns=data[0]).rename(columns=renames)

        # GEOID hierárquico: estado + condado (+ setor)
        geo_parts = [c for c in GEO_COLUMNS if c in df.columns]
        df["unit_id"] = df[geo_parts].astype(str).agg("".join, axis=1)

        for col in value_columns:
            values = pd.to_numeric(df[col], errors="coerce")
            # Anotações do Census (-666666666, -999999999, ...) = dado suprimido
            df[col] = values.where(values >= 0)

        duplicated = df["unit_id"].duplicated()
        if duplicated.any():
            logger.warning(f"Descartando {int(duplicated.sum())} linhas com unit_id repetido.")
            df = df[~duplicated]

        logger.info(f"ACS: {len(df)} unidades recebidas.")
        return df[columns].reset_index(drop=True)
