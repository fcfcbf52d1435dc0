"""
city_info.db.init_db

DB initialization helpers (dev/test convenience).

Responsibilities:
- Create tables for local development and tests.
- Seed the sample cities when the database is empty.
- Keep production migration workflow separate (Alembic).
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from city_info.db import models  # noqa: F401  # register entities on Base.metadata
from city_info.db.base import Base
from city_info.db.models import City, PointOfInterest


def seed_cities() -> list[City]:
    return [
        City(
            name="New York City",
            description="The one with that big park.",
            points_of_interest=[
                PointOfInterest(name="Central Park", description="The most visited urban park in the United States."),
                PointOfInterest(name="Empire State Building", description="A 102-story skyscraper located in Midtown Manhattan."),
            ],
        ),
        City(
            name="Antwerp",
            description="The one with the cathedral that was never really finished.",
            points_of_interest=[
                PointOfInterest(name="Cathedral of Our Lady", description="A Gothic style cathedral, conceived by architects Jan and Pieter Appelmans."),
                PointOfInterest(name="Antwerp Central Station", description="The finest example of railway architecture in Belgium."),
            ],
        ),
        City(
            name="Paris",
            description="The one with that big tower.",
            points_of_interest=[
                PointOfInterest(name="Eiffel Tower", description="A wrought iron lattice tower on the Champ de Mars, named after engineer Gustave Eiffel."),
                PointOfInterest(name="The Louvre", description="The world's largest museum."),
            ],
        ),
    ]


async def init_db(engine: AsyncEngine, *, seed: bool = True) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist, then seed an empty database.
    Production should rely on Alembic migrations.
    """

    # Use a transactional DDL block when supported by the backend.
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if not seed:
        return
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        count = (await session.execute(select(func.count()).select_from(City))).scalar_one()
        if count == 0:
            session.add_all(seed_cities())
            await session.commit()


# --- Module Notes -----------------------------------------------------------
# This helper is intentionally not used for prod. Production workflows should run
# Alembic migrations as part of deployment.
