from .config import config
from .db import db, session_scope
from .logging_setup import logger, get_logger
from .exceptions import (
    DemandPlanningError, ValidationError, NotFoundError, NumericDomainError,
    TransactionError, ForecastError
)

__all__ = [
    'config',
    'db',
    'session_scope',
    'logger',
    'get_logger',
    'DemandPlanningError',
    'ValidationError',
    'NotFoundError',
    'NumericDomainError',
    'TransactionError',
    'ForecastError'
]
