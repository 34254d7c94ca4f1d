"""
Declarative base shared by every table definition in `agency_api.models`.

The registry in `agency_api.schemas.registry` reads `Base.metadata` to learn
each entity's columns, so every model module must be imported before the
registry is built (see `agency_api.models.__init__`).
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Primary keys are the only constraints on the entity tables.
    metadata = MetaData(naming_convention={"pk": "pk_%(table_name)s"})
