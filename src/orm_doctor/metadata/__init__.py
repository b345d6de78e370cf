from orm_doctor.metadata.base import MetadataProvider
from orm_doctor.metadata.sqlalchemy_provider import SqlAlchemyMetadataProvider
from orm_doctor.metadata.static import StaticMetadataProvider

__all__ = ["MetadataProvider", "SqlAlchemyMetadataProvider", "StaticMetadataProvider"]
