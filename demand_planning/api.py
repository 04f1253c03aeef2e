# demand_planning/api.py
"""Operations exposed to the API layer.

Each call runs in its own database session through session_scope() and
hands the services an explicit SqlAlchemyDemandStore.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from demand_planning.config import config
from demand_planning.db import session_scope
from demand_planning.exceptions import ValidationError
from demand_planning.services import bulk_update_service, forecast_processor
from demand_planning.services.comparison_service import ComparisonService
from demand_planning.services.dataset_service import DatasetService
from demand_planning.services.summary_service import SummaryService
from demand_planning.storage.sqlalchemy_store import SqlAlchemyDemandStore

def apply_bulk_percentage_change(
    filters: Optional[Mapping[str, Any]],
    percentage: float,
    description: str
) -> Dict[str, Any]:
    """Scale working demand matching filters by percentage.

    Raises:
        ValidationError: Bad percentage, description or filter
        NotFoundError: No working demand matches the filters
        TransactionError: The store failed; nothing was changed
    """
    with session_scope() as session:
        return bulk_update_service.apply_bulk_percentage_change(
            SqlAlchemyDemandStore(session), filters, percentage, description
        )

def run_forecast_processing() -> Dict[str, Any]:
    """Recompute forecast and inventory parameters for every aggregated product."""
    with session_scope() as session:
        return forecast_processor.run_forecast_processing(SqlAlchemyDemandStore(session))

def load_dataset(
    demand_rows: Iterable[Mapping[str, Any]],
    product_rows: Iterable[Mapping[str, Any]]
) -> Dict[str, int]:
    """Replace the demand and product data set."""
    with session_scope() as session:
        return DatasetService(SqlAlchemyDemandStore(session)).load_dataset(demand_rows, product_rows)

def get_update_history(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Bulk modification audit trail, newest first."""
    max_limit = config.bulk_update_config['history_limit']
    if limit is None:
        limit = max_limit
    if limit < 1:
        raise ValidationError("Limit must be at least 1", details={'limit': limit})

    with session_scope() as session:
        return SqlAlchemyDemandStore(session).list_update_history(min(limit, max_limit))

def compare_with_original() -> Dict[str, Any]:
    """Differences between working and original demand."""
    with session_scope() as session:
        return ComparisonService(SqlAlchemyDemandStore(session)).summarize()

def get_demand_summary() -> Dict[str, Any]:
    """Totals, distinct counts, date range and monthly demand per product."""
    with session_scope() as session:
        return SummaryService(SqlAlchemyDemandStore(session)).summarize()
