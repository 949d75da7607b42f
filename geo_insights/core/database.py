# geo_insights/core/database.py
import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from geo_insights.core.config import settings

def build_engine(database_url: str, log_level: str = "INFO") -> AsyncEngine:
    """
    Motor assíncrono do PostGIS. O SQL só vai para o log em DEBUG.
    Nenhuma conexão é aberta aqui; a primeira sai com a primeira sessão.
    """
    level = logging.getLevelName(str(log_level).upper())
    return create_async_engine(
        database_url,
        echo=isinstance(level, int) and level <= logging.DEBUG,
        pool_pre_ping=True,  # conexões derrubadas pelo Postgres são refeitas
    )

engine = build_engine(settings.DATABASE_URL, settings.LOG_LEVEL)

# Sessões não expiram no commit: a rota ainda lê os objetos depois de salvar
AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

Base = declarative_base()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependência do FastAPI: uma sessão por requisição."""
    async with AsyncSessionLocal() as session:
        yield session
