from .aggregation_service import ForecastAggregator
from .bulk_update_service import (
    BulkModificationTransaction, TransactionState, apply_bulk_percentage_change
)
from .forecast_processor import ForecastProcessor, run_forecast_processing
from .dataset_service import DatasetService
from .comparison_service import ComparisonService
from .summary_service import SummaryService

__all__ = [
    'ForecastAggregator',
    'BulkModificationTransaction',
    'TransactionState',
    'apply_bulk_percentage_change',
    'ForecastProcessor',
    'run_forecast_processing',
    'DatasetService',
    'ComparisonService',
    'SummaryService'
]
