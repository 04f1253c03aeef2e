# demand_planning/services/bulk_update_service.py
import enum
import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from demand_planning.config import config
from demand_planning.core.scope import DemandScope
from demand_planning.exceptions import (
    DemandPlanningError, NotFoundError, TransactionError, ValidationError
)
from demand_planning.services.aggregation_service import ForecastAggregator
from demand_planning.storage.interface import DemandStore
from demand_planning.logging_setup import get_logger

logger = get_logger(__name__)

class TransactionState(enum.Enum):
    VALIDATING = 'Validating'
    SCOPING = 'Scoping'
    COUNTING = 'Counting'
    UPDATING = 'Updating'
    AUDITING = 'Auditing'
    REBUILDING_AGGREGATE = 'RebuildingAggregate'
    COMMITTED = 'Committed'
    ABORTED = 'Aborted'

    def __str__(self):
        return self.value

class BulkModificationTransaction:
    """Scoped percentage change to working demand, applied as one atomic unit.

    Scales every matching working row, appends an update history entry and
    rebuilds the whole forecast aggregate. Either all of it commits or, on
    any failure, none of it does. The timestamp stamped on modified_at and
    on the history entry is taken once the store transaction is open.
    """

    def __init__(
        self,
        store: DemandStore,
        filters: Optional[Mapping[str, Any]],
        percentage: float,
        description: str,
        min_percentage: Optional[float] = None
    ):
        """Initialize the transaction.

        Args:
            store: Demand store
            filters: Optional month_year (YYYY-MM), product_id and customer_id
            percentage: Percentage change, e.g. 10 for +10%
            description: Reason for the change, recorded in the audit trail
            min_percentage: Lowest accepted percentage (defaults to config)
        """
        self.store = store
        self.filters = dict(filters or {})
        self.percentage = percentage
        self.description = description
        if min_percentage is None:
            min_percentage = config.bulk_update_config['min_percentage']
        self.min_percentage = min_percentage

        self.state = None
        self.transitions: List[TransactionState] = []
        self.scope: Optional[DemandScope] = None
        self.records_affected = 0

    def _enter(self, state: TransactionState):
        self.state = state
        self.transitions.append(state)
        logger.debug(f"Bulk modification state: {state}")

    def _validate(self):
        """Check arguments before any store access.

        Raises:
            ValidationError for a bad percentage, description or filter
        """
        percentage = self.percentage
        if isinstance(percentage, bool):
            raise ValidationError("Percentage must be a number", details={'percentage': percentage})
        try:
            percentage = float(percentage)
        except (TypeError, ValueError):
            raise ValidationError("Percentage must be a number", details={'percentage': self.percentage})

        if not math.isfinite(percentage):
            raise ValidationError("Percentage must be finite", details={'percentage': self.percentage})
        if percentage == 0:
            raise ValidationError("Percentage cannot be zero")
        if percentage < self.min_percentage:
            raise ValidationError(
                f"Percentage cannot be less than {self.min_percentage:g}%",
                details={'percentage': percentage}
            )

        if not isinstance(self.description, str) or not self.description.strip():
            raise ValidationError("Description is required")

        self.percentage = percentage
        self.description = self.description.strip()
        self.scope = DemandScope.from_filters(self.filters)

    def _change_summary(self, multiplier: float) -> str:
        target = "all working demand records" if self.scope.is_empty else f"working demand where {self.scope.describe()}"
        return (
            f"Scaled quantity by {multiplier:g} ({self.percentage:+g}%) "
            f"on {self.records_affected} record(s) of {target}"
        )

    def execute(self) -> Dict[str, Any]:
        """Run the transaction.

        Returns:
            Dictionary with records_affected, change_summary, history_id,
            multiplier and aggregate_rows

        Raises:
            ValidationError: Bad arguments, nothing was touched
            NotFoundError: The scope matched no rows, the transaction was rolled back
            TransactionError: The store failed, the transaction was rolled back
        """
        self._enter(TransactionState.VALIDATING)
        try:
            self._validate()
        except ValidationError as e:
            self._enter(TransactionState.ABORTED)
            logger.warning(f"Bulk modification rejected: {e}")
            raise

        self._enter(TransactionState.SCOPING)
        multiplier = 1 + self.percentage / 100
        logger.info(f"Applying {self.percentage:+g}% to working demand where {self.scope.describe()}")

        try:
            with self.store.transaction():
                # Shared by modified_at and the audit entry
                timestamp = datetime.now()
                self._enter(TransactionState.COUNTING)
                self.records_affected = self.store.count_working(self.scope)
                if self.records_affected == 0:
                    raise NotFoundError(
                        "No records match the specified criteria",
                        details=self.scope.to_dict()
                    )

                self._enter(TransactionState.UPDATING)
                updated = self.store.scale_working(self.scope, multiplier, timestamp)
                if updated != self.records_affected:
                    raise TransactionError(
                        f"Updated {updated} rows but {self.records_affected} matched the scope",
                        details={'counted': self.records_affected, 'updated': updated}
                    )

                self._enter(TransactionState.AUDITING)
                change_summary = self._change_summary(multiplier)
                history_id = self.store.append_audit({
                    'month_year': self.scope.month_year,
                    'product_id': self.scope.product_id,
                    'customer_id': self.scope.customer_id,
                    'percentage': self.percentage,
                    'description': self.description,
                    'records_affected': self.records_affected,
                    'change_summary': change_summary,
                    'created_at': timestamp
                })

                self._enter(TransactionState.REBUILDING_AGGREGATE)
                aggregate_rows = ForecastAggregator(self.store).rebuild()
        except DemandPlanningError as e:
            self._enter(TransactionState.ABORTED)
            logger.warning(f"Bulk modification aborted: {e}")
            raise
        except Exception as e:
            self._enter(TransactionState.ABORTED)
            logger.error(f"Bulk modification failed and was rolled back: {str(e)}")
            raise TransactionError(
                "Failed to execute bulk update",
                details={'scope': self.scope.to_dict(), 'cause': str(e)}
            ) from e

        self._enter(TransactionState.COMMITTED)
        logger.info(f"Successfully updated {self.records_affected} records")

        return {
            'records_affected': self.records_affected,
            'change_summary': change_summary,
            'history_id': history_id,
            'multiplier': multiplier,
            'aggregate_rows': aggregate_rows
        }

def apply_bulk_percentage_change(
    store: DemandStore,
    filters: Optional[Mapping[str, Any]],
    percentage: float,
    description: str
) -> Dict[str, Any]:
    """Apply a scoped percentage change to working demand.

    See BulkModificationTransaction.execute for the result and errors.
    """
    return BulkModificationTransaction(store, filters, percentage, description).execute()
