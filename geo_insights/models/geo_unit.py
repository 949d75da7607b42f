# geo_insights/models/geo_unit.py
from sqlalchemy import Column, Integer, String, Float
from geoalchemy2 import Geometry
from geo_insights.core.database import Base

class GeoUnitRecord(Base):
    __tablename__ = "geo_units"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, index=True, nullable=False)  # GEOID (estado+condado[+setor])
    name = Column(String, nullable=False)
    level = Column(String, nullable=False)  # "county" ou "tract"

    # Estimativas ACS (nulas = suprimidas)
    median_contract_rent = Column(Float, nullable=True)
    housing_units_total = Column(Float, nullable=True)
    housing_units_built_2020_or_later = Column(Float, nullable=True)
    occupied_housing_units_total = Column(Float, nullable=True)
    owner_occupied_moved_in_after_2021 = Column(Float, nullable=True)
    renter_occupied_moved_in_after_2021 = Column(Float, nullable=True)

    # Margens de erro
    median_contract_rent_moe = Column(Float, nullable=True)
    housing_units_total_moe = Column(Float, nullable=True)
    housing_units_built_2020_or_later_moe = Column(Float, nullable=True)
    occupied_housing_units_total_moe = Column(Float, nullable=True)
    owner_occupied_moved_in_after_2021_moe = Column(Float, nullable=True)
    renter_occupied_moved_in_after_2021_moe = Column(Float, nullable=True)

    # Derivados (%)
    new_construction_share = Column(Float, nullable=True)
    recent_movein_share = Column(Float, nullable=True)

    # Polygon ou MultiPolygon, SRID 4326
    geom = Column(Geometry("GEOMETRY", srid=4326, spatial_index=True), nullable=True)
