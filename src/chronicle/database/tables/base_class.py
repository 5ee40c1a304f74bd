import uuid

from sqlalchemy import Column, DateTime, Uuid, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase


class Base(AsyncAttrs, DeclarativeBase):
    pass


class BaseWithTableName(Base):
    __abstract__ = True


class IdMixin:
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class BasePublic(IdMixin, TimestampMixin, BaseWithTableName):
    __abstract__ = True
