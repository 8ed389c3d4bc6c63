from sqlalchemy.orm import DeclarativeBase
from rafflepot.db.metadata import metadata_obj


class Base(DeclarativeBase):
    """Declarative base shared by every raffle table."""

    metadata = metadata_obj
