# geo_insights/services/acs/scope.py
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from geo_insights.services.acs.errors import ScopeResolutionError

STATE_FIPS = {
    "alabama": "01", "alaska": "02", "arizona": "04", "arkansas": "05",
    "california": "06", "colorado": "08", "connecticut": "09", "delaware": "10",
    "district of columbia": "11", "florida": "12", "georgia": "13", "hawaii": "15",
    "idaho": "16", "illinois": "17", "indiana": "18", "iowa": "19",
    "kansas": "20", "kentucky": "21", "louisiana": "22", "maine": "23",
    "maryland": "24", "massachusetts": "25", "michigan": "26", "minnesota": "27",
    "mississippi": "28", "missouri": "29", "montana": "30", "nebraska": "31",
    "nevada": "32", "new hampshire": "33", "new jersey": "34", "new mexico": "35",
    "new york": "36", "north carolina": "37", "north dakota": "38", "ohio": "39",
    "oklahoma": "40", "oregon": "41", "pennsylvania": "42", "rhode island": "44",
    "south carolina": "45", "south dakota": "46", "tennessee": "47", "texas": "48",
    "utah": "49", "vermont": "50", "virginia": "51", "washington": "53",
    "west virginia": "54", "wisconsin": "55", "wyoming": "56", "puerto rico": "72",
}

STATE_ABBREVIATIONS = {
    "AL": "01", "AK": "02", "AZ": "04", "AR": "05", "CA": "06", "CO": "08",
    "CT": "09", "DE": "10", "DC": "11", "FL": "12", "GA": "13", "HI": "15",
    "ID": "16", "IL": "17", "IN": "18", "IA": "19", "KS": "20", "KY": "21",
    "LA": "22", "ME": "23", "MD": "24", "MA": "25", "MI": "26", "MN": "27",
    "MS": "28", "MO": "29", "MT": "30", "NE": "31", "NV": "32", "NH": "33",
    "NJ": "34", "NM": "35", "NY": "36", "NC": "37", "ND": "38", "OH": "39",
    "OK": "40", "OR": "41", "PA": "42", "RI": "44", "SC": "45", "SD": "46",
    "TN": "47", "TX": "48", "UT": "49", "VT": "50", "VA": "51", "WA": "53",
    "WV": "54", "WI": "55", "WY": "56", "PR": "72",
}


def resolve_state(state: str) -> str:
    """Nome, sigla ou código FIPS -> código FIPS de 2 dígitos."""
    value = (state or "").strip()
    if value.isdigit() and value.zfill(2) in STATE_FIPS.values():
        return value.zfill(2)
    if value.upper() in STATE_ABBREVIATIONS:
        return STATE_ABBREVIATIONS[value.upper()]
    if value.lower() in STATE_FIPS:
        return STATE_FIPS[value.lower()]
    raise ScopeResolutionError(f"Estado desconhecido: {state!r}")


def normalize_county_name(name: str) -> str:
    """'Los Angeles County, California' e 'los angeles' viram a mesma chave."""
    value = name.split(",")[0].strip().lower()
    for suffix in (" county", " parish", " borough", " census area", " municipio", " municipality"):
        if value.endswith(suffix):
            value = value[: -len(suffix)]
            break
    return value.strip()


class Scope(BaseModel):
    """
    Recorte geográfico de uma consulta.
    Dois formatos: país inteiro por condado, ou setores (tracts) de condados de um estado.
    """
    model_config = ConfigDict(frozen=True)

    level: Literal["county", "tract"]
    state: Optional[str] = None
    counties: Tuple[str, ...] = ()

    @classmethod
    def nationwide(cls) -> "Scope":
        return cls(level="county")

    @classmethod
    def tracts(cls, state: str, counties) -> "Scope":
        return cls(level="tract", state=state, counties=tuple(counties))

    @property
    def label(self) -> str:
        if self.level == "county":
            return "EUA (condados)"
        return f"{self.state} [{', '.join(self.counties)}] (setores)"

    def state_fips(self) -> str:
        if self.level != "tract":
            raise ScopeResolutionError("Escopo nacional não tem estado.")
        if not self.counties:
            raise ScopeResolutionError(f"Nenhum condado informado para {self.state!r}.")
        return resolve_state(self.state)
