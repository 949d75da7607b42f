# geo_insights/services/acs/derivation.py
import logging
from typing import List

import pandas as pd

from geo_insights.schemas.geo_unit import GeoUnit
from geo_insights.services.acs.errors import SchemaMismatchError
from geo_insights.services.acs.fields import (
    DERIVED_FIELDS,
    ESTIMATE_FIELDS,
    estimate_column,
    margin_column,
)

logger = logging.getLogger(__name__)


def normalize(table: pd.DataFrame) -> pd.DataFrame:
    """
    Remove o sufixo de estimativa das seis colunas (median_contract_rentE -> median_contract_rent).
    Margens (<campo>M) ficam com o nome original. Não altera a tabela recebida.
    """
    renames = {estimate_column(name): name for name in ESTIMATE_FIELDS}
    missing = [col for col in renames if col not in table.columns]
    if missing:
        raise SchemaMismatchError(f"Colunas de estimativa ausentes: {missing}")

    normalized = table.rename(columns=renames)
    for name in ESTIMATE_FIELDS:
        normalized[name] = pd.to_numeric(normalized[name], errors="coerce").astype(float)
    return normalized


def _share(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    # Denominador nulo ou zero = taxa indefinida (nula), nunca infinito
    denominator = denominator.where(denominator > 0)
    return numerator * 100 / denominator


def derive(table: pd.DataFrame) -> pd.DataFrame:
    """Anexa new_construction_share e recent_movein_share (%) a uma tabela normalizada."""
    moved_in = table["owner_occupied_moved_in_after_2021"] + table["renter_occupied_moved_in_after_2021"]

    derived = table.assign(
        new_construction_share=_share(
            table["housing_units_built_2020_or_later"], table["housing_units_total"]
        ),
        recent_movein_share=_share(moved_in, table["occupied_housing_units_total"]),
    )

    undefined = derived[list(DERIVED_FIELDS)].isna().any(axis=1).sum()
    if undefined:
        logger.info(f"{int(undefined)} de {len(derived)} unidades com taxa indefinida.")
    return derived


def _clean(value):
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def to_records(table: pd.DataFrame) -> List[GeoUnit]:
    """Tabela derivada -> lista de GeoUnit (NaN vira None)."""
    missing = [c for c in ("unit_id", "display_name") + ESTIMATE_FIELDS + DERIVED_FIELDS if c not in table.columns]
    if missing:
        raise SchemaMismatchError(f"Tabela não derivada, faltam: {missing}")

    records = []
    for row in table.to_dict(orient="records"):
        values = {name: _clean(row.get(name)) for name in ESTIMATE_FIELDS + DERIVED_FIELDS}
        values.update({f"{name}_moe": _clean(row.get(margin_column(name))) for name in ESTIMATE_FIELDS})
        records.append(GeoUnit(
            unit_id=str(row["unit_id"]),
            display_name=str(row["display_name"]),
            boundary=_clean(row.get("geometry")),
            **values,
        ))
    return records
