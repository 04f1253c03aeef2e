# demand_planning/services/dataset_service.py
from typing import Any, Dict, Iterable, List, Mapping

from demand_planning.exceptions import DemandPlanningError, TransactionError, ValidationError
from demand_planning.services.aggregation_service import ForecastAggregator
from demand_planning.storage.interface import DemandStore
from demand_planning.utils.date_utils import convert_to_date
from demand_planning.utils.validation import (
    validate_demand_record, validate_product_record, PRODUCT_NUMERIC_FIELDS
)
from demand_planning.logging_setup import get_logger, logger as log_manager

logger = get_logger(__name__)

class DatasetService:
    """Full reset of the demand dataset from already-parsed rows."""

    def __init__(self, store: DemandStore):
        """Initialize the dataset service.

        Args:
            store: Demand store
        """
        self.store = store

    def _normalize_demand(self, rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        normalized = []
        for index, row in enumerate(rows, start=1):
            errors = validate_demand_record(row)
            if errors:
                raise ValidationError(f"Error processing demand row {index}", details=errors)

            normalized.append({
                'demand_date': convert_to_date(row['demand_date']),
                'product_id': str(row['product_id']).strip(),
                'product_name': str(row['product_name']).strip(),
                'customer_id': str(row['customer_id']).strip(),
                'customer_name': str(row['customer_name']).strip(),
                'quantity': float(row['quantity'])
            })

        if not normalized:
            raise ValidationError("No demand rows supplied")
        return normalized

    def _normalize_products(self, rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        normalized = []
        seen = set()
        for index, row in enumerate(rows, start=1):
            errors = validate_product_record(row)
            if errors:
                raise ValidationError(f"Error processing product row {index}", details=errors)

            product_id = str(row['product_id']).strip()
            if product_id in seen:
                raise ValidationError(
                    f"Error processing product row {index}",
                    details={'product_id': f'Duplicate product_id {product_id}'}
                )
            seen.add(product_id)

            product = {
                'product_id': product_id,
                'product_name': str(row['product_name']).strip()
            }
            for field in PRODUCT_NUMERIC_FIELDS:
                value = row.get(field)
                product[field] = None if value is None else float(value)
            normalized.append(product)

        if not normalized:
            raise ValidationError("No product rows supplied")
        return normalized

    def load_dataset(
        self,
        demand_rows: Iterable[Mapping[str, Any]],
        product_rows: Iterable[Mapping[str, Any]]
    ) -> Dict[str, int]:
        """Replace all demand and product data and rebuild the forecast aggregate.

        Each demand row is written to both the original and the working
        table. Update history is kept.

        Args:
            demand_rows: Parsed demand rows
            product_rows: Parsed product rows

        Returns:
            Dictionary with demand_records, product_records and aggregate_rows
        """
        demand = self._normalize_demand(demand_rows)
        products = self._normalize_products(product_rows)

        log_info = log_manager.batch_start_log(
            'dataset_load',
            {'demand_rows': len(demand), 'product_rows': len(products)}
        )
        try:
            with self.store.transaction():
                demand_count, product_count = self.store.replace_dataset(demand, products)
                aggregate_rows = ForecastAggregator(self.store).rebuild()
        except DemandPlanningError:
            log_manager.batch_end_log(log_info, success=False)
            raise
        except Exception as e:
            log_manager.batch_end_log(log_info, success=False, result_info={'error': str(e)})
            raise TransactionError("Failed to save data to database", details={'cause': str(e)}) from e

        result = {
            'demand_records': demand_count,
            'product_records': product_count,
            'aggregate_rows': aggregate_rows
        }
        log_manager.batch_end_log(log_info, success=True, result_info=result)
        return result
