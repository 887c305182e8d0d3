from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Same names the migrations use, so autogenerate diffs stay quiet
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for the stays schema."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
