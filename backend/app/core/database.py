# backend/app/core/database.py
"""
Moteur SQLAlchemy async + fabrique de sessions.

get_db()         : dépendance FastAPI (une session par requête)
SessionLocal     : utilisée par les tâches de fond, qui ouvrent
                   leur propre session après la réponse HTTP
"""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session
