"""
Catalog Repository

Lookups against programs and countries.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from .models import Country, Program


async def get_program(db: AsyncSession, program_id: int) -> Program | None:
    """Get a program by id."""
    return await db.get(Program, program_id)


async def country_exists(db: AsyncSession, country_id: int) -> bool:
    return await db.get(Country, country_id) is not None
