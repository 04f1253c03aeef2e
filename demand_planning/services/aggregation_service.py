# demand_planning/services/aggregation_service.py
from demand_planning.storage.interface import DemandStore
from demand_planning.logging_setup import get_logger

logger = get_logger(__name__)

class ForecastAggregator:
    """Rebuilds the monthly forecast aggregate from the working demand table."""

    def __init__(self, store: DemandStore):
        """Initialize the aggregator.

        Args:
            store: Demand store; rebuild() runs inside the caller's transaction
        """
        self.store = store

    def rebuild(self) -> int:
        """Replace every aggregate row with the projection of the whole working table.

        Returns:
            Number of aggregate rows written
        """
        written = self.store.rebuild_aggregate()
        logger.info(f"Rebuilt forecast aggregate: {written} product-month rows")
        return written
