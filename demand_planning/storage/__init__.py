from .interface import DemandStore
from .sqlalchemy_store import SqlAlchemyDemandStore

__all__ = [
    'DemandStore',
    'SqlAlchemyDemandStore'
]
