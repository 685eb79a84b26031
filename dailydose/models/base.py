from sqlalchemy import Column, Integer, DateTime, MetaData
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Stable constraint names; upserts target the unique keys by their columns
metadata = MetaData(naming_convention={
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
})

Base = declarative_base(metadata=metadata)


class BaseModel(Base):
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self) -> str:
        # Read from __dict__ so an expired instance never triggers a load
        return f"<{self.__class__.__name__} id={self.__dict__.get('id')}>"
