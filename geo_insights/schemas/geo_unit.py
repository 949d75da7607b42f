# geo_insights/schemas/geo_unit.py
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

class GeoUnit(BaseModel):
    """
    Uma unidade geográfica (condado ou setor) já normalizada e derivada.
    Campos numéricos nulos = dado suprimido ou indefinido.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    unit_id: str
    display_name: str
    boundary: Optional[Any] = None  # shapely Polygon/MultiPolygon

    median_contract_rent: Optional[float] = None
    housing_units_total: Optional[float] = None
    housing_units_built_2020_or_later: Optional[float] = None
    occupied_housing_units_total: Optional[float] = None
    owner_occupied_moved_in_after_2021: Optional[float] = None
    renter_occupied_moved_in_after_2021: Optional[float] = None

    median_contract_rent_moe: Optional[float] = None
    housing_units_total_moe: Optional[float] = None
    housing_units_built_2020_or_later_moe: Optional[float] = None
    occupied_housing_units_total_moe: Optional[float] = None
    owner_occupied_moved_in_after_2021_moe: Optional[float] = None
    renter_occupied_moved_in_after_2021_moe: Optional[float] = None

    new_construction_share: Optional[float] = None
    recent_movein_share: Optional[float] = None
