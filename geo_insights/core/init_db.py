# geo_insights/core/init_db.py
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from geo_insights.core import database
# Registra geo_units no metadata antes do create_all
from geo_insights.models.geo_unit import GeoUnitRecord  # noqa: F401

logger = logging.getLogger(__name__)

async def init_tables(engine: Optional[AsyncEngine] = None):
    """Garante a extensão PostGIS e cria geo_units se ainda não existir."""
    if engine is None:
        engine = database.engine
    logger.info("⏳ Preparando PostGIS (extensão + geo_units)...")
    async with engine.begin() as conn:
        # A coluna Geometry falha no CREATE TABLE sem a extensão
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))
        await conn.run_sync(database.Base.metadata.create_all)
    logger.info("✅ geo_units pronta.")
