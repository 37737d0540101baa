"""
Catalog Models

Minimal read-only mappings of the catalog tables this service joins against.
The full program schema is managed by the catalog service.
"""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Country(Base):
    """Destination country."""

    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    iso_code: Mapped[str | None] = mapped_column(String(3), nullable=True)


class Program(Base):
    """Study program offered by a university in a country."""

    __tablename__ = "programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_name: Mapped[str] = mapped_column(String(300), nullable=False)
    university_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    country_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("countries.id", ondelete="SET NULL"), nullable=True, index=True
    )
