# demand_planning/storage/interface.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, ContextManager, Dict, Iterable, Iterator, List, Optional, Tuple

from demand_planning.core.aggregation import aggregate_by_month
from demand_planning.core.scope import DemandScope

class DemandStore(ABC):
    """Storage port used by the bulk modification, aggregation and forecast services.

    Every write method runs inside the caller's transaction(); nothing is
    visible to other sessions until that transaction commits, and an
    exception raised inside it discards every write made within it.
    """

    @abstractmethod
    def transaction(self) -> ContextManager['DemandStore']:
        """Open an atomic unit of work: commit on success, roll back and re-raise on error."""
        pass

    @abstractmethod
    def count_working(self, scope: DemandScope) -> int:
        """Count working demand rows matching scope."""
        pass

    @abstractmethod
    def scale_working(self, scope: DemandScope, multiplier: float, modified_at: datetime) -> int:
        """Multiply the quantity of every matching working row; return rows updated."""
        pass

    @abstractmethod
    def append_audit(self, entry: Dict[str, Any]) -> int:
        """Append one update history entry and return its id."""
        pass

    @abstractmethod
    def working_records(self) -> Iterator[Dict[str, Any]]:
        """Iterate over all working demand rows as mappings."""
        pass

    @abstractmethod
    def original_records(self) -> Iterator[Dict[str, Any]]:
        """Iterate over all original demand rows as mappings."""
        pass

    @abstractmethod
    def replace_aggregate(self, rows: Iterable[Dict[str, Any]]) -> int:
        """Delete every forecast aggregate row and insert rows; return rows inserted."""
        pass

    def rebuild_aggregate(self) -> int:
        """Replace the forecast aggregate with the monthly projection of working demand.

        Stores that can group inside the database override this.
        """
        return self.replace_aggregate(aggregate_by_month(self.working_records()))

    @abstractmethod
    def read_aggregate(self) -> List[Dict[str, Any]]:
        """Read every forecast aggregate row."""
        pass

    @abstractmethod
    def product_inputs(self) -> Dict[str, Dict[str, Any]]:
        """Static cost and lead time inputs keyed by product_id."""
        pass

    @abstractmethod
    def write_product_parameters(self, updates: List[Dict[str, Any]], updated_at: datetime) -> int:
        """Persist derived forecast fields for existing products; return rows written."""
        pass

    @abstractmethod
    def list_update_history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Update history entries, newest first."""
        pass

    @abstractmethod
    def replace_dataset(
        self,
        demand_rows: List[Dict[str, Any]],
        product_rows: List[Dict[str, Any]]
    ) -> Tuple[int, int]:
        """Replace original demand, working demand and products; return inserted counts.

        The forecast aggregate is cleared as well. Update history is kept.
        """
        pass
