# geo_insights/schemas/geo.py
from pydantic import BaseModel
from typing import List, Dict, Any, Optional

class FeatureProperties(BaseModel):
    """
    Define QUAIS dados serão enviados para o Frontend.
    Se o campo não estiver aqui, o FastAPI remove ele do JSON.
    """
    unit_id: str
    display_name: str
    level: Optional[str] = None

    median_contract_rent: Optional[float] = None
    housing_units_total: Optional[float] = None
    housing_units_built_2020_or_later: Optional[float] = None
    occupied_housing_units_total: Optional[float] = None
    owner_occupied_moved_in_after_2021: Optional[float] = None
    renter_occupied_moved_in_after_2021: Optional[float] = None

    # Margens de erro (90%) publicadas junto com cada estimativa
    median_contract_rent_moe: Optional[float] = None
    housing_units_total_moe: Optional[float] = None
    housing_units_built_2020_or_later_moe: Optional[float] = None
    occupied_housing_units_total_moe: Optional[float] = None
    owner_occupied_moved_in_after_2021_moe: Optional[float] = None
    renter_occupied_moved_in_after_2021_moe: Optional[float] = None

    new_construction_share: Optional[float] = None
    recent_movein_share: Optional[float] = None

class Feature(BaseModel):
    type: str = "Feature"
    geometry: Optional[Dict[str, Any]] = None
    properties: FeatureProperties

class FeatureCollection(BaseModel):
    type: str = "FeatureCollection"
    features: List[Feature]
