from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Tables are declared through the ORM but read and written with SQLAlchemy
    Core statements on an explicit Connection, so every model here is a plain
    table mapping without relationships or session-level behaviour.
    """

    pass
