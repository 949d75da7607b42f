# geo_insights/repositories/geo_unit_repository.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert
from geo_insights.models.geo_unit import GeoUnitRecord
from geo_insights.services.acs.derivation import to_records
from geo_insights.services.acs.fields import ESTIMATE_FIELDS, DERIVED_FIELDS
import geopandas as gpd
import json
import logging

logger = logging.getLogger(__name__)

VALUE_COLUMNS = list(ESTIMATE_FIELDS) + [f"{name}_moe" for name in ESTIMATE_FIELDS] + list(DERIVED_FIELDS)

class GeoUnitRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def save_units(self, gdf: gpd.GeoDataFrame, level: str) -> int:
        """
        Recebe a tabela montada e faz Upsert por código (GEOID).
        Unidades de consultas anteriores que não vieram agora são mantidas.
        """
        if gdf.empty:
            logger.warning("Tentativa de salvar GeoDataFrame vazio.")
            return 0

        logger.info(f"💾 Salvando {len(gdf)} unidades ({level}) no PostGIS...")

        # Dicionário explícito para evitar erros de "Unconsumed column"
        rows = []
        for unit in to_records(gdf):
            row = {"code": unit.unit_id, "name": unit.display_name, "level": level}
            row.update({col: getattr(unit, col) for col in VALUE_COLUMNS})
            # GeoAlchemy2 aceita WKT direto na string
            row["geom"] = unit.boundary.wkt if unit.boundary is not None else None
            rows.append(row)

        stmt = insert(GeoUnitRecord)
        stmt = stmt.on_conflict_do_update(
            index_elements=["code"],
            set_={col: stmt.excluded[col] for col in ["name", "level", "geom"] + VALUE_COLUMNS},
        )

        try:
            await self.db.execute(stmt, rows)
            await self.db.commit()
            logger.info("✅ Dados persistidos com sucesso!")
        except Exception as e:
            logger.error(f"Erro ao salvar no banco: {e}")
            await self.db.rollback()
            raise

        return len(rows)

    async def get_all_features(self):
        """Retorna as unidades salvas como Features GeoJSON."""
        stmt = select(
            GeoUnitRecord.code, GeoUnitRecord.name, GeoUnitRecord.level,
            *[getattr(GeoUnitRecord, col) for col in VALUE_COLUMNS],
            func.ST_AsGeoJSON(GeoUnitRecord.geom).label("geojson")
        )
        result = await self.db.execute(stmt)

        features = []
        for row in result.all():
            mapping = row._mapping
            properties = {"unit_id": row.code, "display_name": row.name, "level": row.level}
            properties.update({col: mapping[col] for col in VALUE_COLUMNS})
            features.append({
                "type": "Feature",
                "geometry": json.loads(row.geojson) if row.geojson else None,
                "properties": properties,
            })
        return features
