# demand_planning/services/summary_service.py
from typing import Any, Dict

from demand_planning.core.aggregation import aggregate_by_month
from demand_planning.storage.interface import DemandStore
from demand_planning.utils.date_utils import month_name
from demand_planning.logging_setup import get_logger

logger = get_logger(__name__)

class SummaryService:
    """Read-only statistics over the working demand table."""

    def __init__(self, store: DemandStore):
        """Initialize the summary service.

        Args:
            store: Demand store
        """
        self.store = store

    def summarize(self) -> Dict[str, Any]:
        """Summarize working demand.

        Returns:
            Dictionary with total_records, total_quantity, unique_products,
            unique_customers, date_range (ISO start_date and end_date, None
            when there is no demand) and product_demand_by_month, ordered by
            product name, year and month
        """
        records = list(self.store.working_records())
        dates = [r['demand_date'] for r in records]

        products = {}
        monthly = sorted(
            aggregate_by_month(records),
            key=lambda r: (r['product_name'], r['period'])
        )
        for row in monthly:
            product = products.setdefault(row['product_id'], {
                'product_id': row['product_id'],
                'product_name': row['product_name'],
                'monthly_demand': []
            })
            period = row['period']
            product['monthly_demand'].append({
                'year': period.year,
                'month': period.month,
                'month_name': month_name(period.month),
                'total_quantity': row['quantity']
            })

        summary = {
            'total_records': len(records),
            'total_quantity': sum(float(r['quantity']) for r in records),
            'unique_products': len({r['product_id'] for r in records}),
            'unique_customers': len({r['customer_id'] for r in records}),
            'date_range': {
                'start_date': min(dates).isoformat() if dates else None,
                'end_date': max(dates).isoformat() if dates else None
            },
            'product_demand_by_month': list(products.values())
        }
        logger.info(
            f"Summarized {summary['total_records']} demand records across "
            f"{summary['unique_products']} products"
        )
        return summary
