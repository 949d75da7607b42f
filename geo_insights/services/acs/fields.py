# geo_insights/services/acs/fields.py
import re
from typing import Dict, Mapping

from geo_insights.services.acs.errors import FieldSpecError

# Sufixos do Census: E = estimativa, M = margem de erro
ESTIMATE_SUFFIX = "E"
MARGIN_SUFFIX = "M"

ESTIMATE_FIELDS = (
    "median_contract_rent",
    "housing_units_total",
    "housing_units_built_2020_or_later",
    "occupied_housing_units_total",
    "owner_occupied_moved_in_after_2021",
    "renter_occupied_moved_in_after_2021",
)

DERIVED_FIELDS = ("new_construction_share", "recent_movein_share")

# ACS 5 anos (2022): B25058 aluguel, B25034 ano de construção, B25038 posse x ano de mudança
DEFAULT_FIELD_SPEC: Dict[str, str] = {
    "median_contract_rent": "B25058_001",
    "housing_units_total": "B25034_001",
    "housing_units_built_2020_or_later": "B25034_002",
    "occupied_housing_units_total": "B25038_001",
    "owner_occupied_moved_in_after_2021": "B25038_003",
    "renter_occupied_moved_in_after_2021": "B25038_010",
}

# Tabelas detalhadas (B25058_001), perfis (DP04_0134, DP04_0134P em %) e
# tabelas temáticas (S2502_C01_001). A raiz não leva o sufixo E/M.
VARIABLE_PATTERN = re.compile(
    r"^(?:[BC]\d{5}[A-Z]{0,2}_\d{3}"
    r"|DP\d{2}(?:PR)?_\d{4}P?"
    r"|S\d{4}[A-Z]{0,2}_C\d{2}_\d{3})$"
)


def validate_field_spec(field_spec: Mapping[str, str]) -> Dict[str, str]:
    """Valida o mapeamento nome lógico -> variável. Retorna uma cópia limpa."""
    if len(field_spec) != len(ESTIMATE_FIELDS):
        raise FieldSpecError(
            f"field_spec precisa de {len(ESTIMATE_FIELDS)} campos, recebeu {len(field_spec)}."
        )

    unknown = set(field_spec) - set(ESTIMATE_FIELDS)
    if unknown:
        raise FieldSpecError(f"Nomes lógicos desconhecidos: {sorted(unknown)}")

    cleaned = {}
    for name in ESTIMATE_FIELDS:
        identifier = str(field_spec[name]).strip().upper()
        # Aceita "B25058_001E" e normaliza para a raiz da variável
        if identifier.endswith(ESTIMATE_SUFFIX) and VARIABLE_PATTERN.match(identifier[:-1]):
            identifier = identifier[:-1]
        if not VARIABLE_PATTERN.match(identifier):
            raise FieldSpecError(f"Variável inválida para '{name}': {field_spec[name]!r}")
        cleaned[name] = identifier

    if len(set(cleaned.values())) != len(cleaned):
        raise FieldSpecError("field_spec contém variáveis repetidas.")

    return cleaned


def estimate_column(name: str) -> str:
    return f"{name}{ESTIMATE_SUFFIX}"


def margin_column(name: str) -> str:
    return f"{name}{MARGIN_SUFFIX}"
