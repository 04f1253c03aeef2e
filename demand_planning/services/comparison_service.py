# demand_planning/services/comparison_service.py
import math
from collections import defaultdict
from typing import Any, Dict, Iterable, Mapping

from demand_planning.core.aggregation import aggregate_by_month
from demand_planning.storage.interface import DemandStore
from demand_planning.utils.date_utils import month_name
from demand_planning.logging_setup import get_logger

logger = get_logger(__name__)

def _differs(a: float, b: float) -> bool:
    return not math.isclose(a, b, rel_tol=1e-9, abs_tol=1e-9)

def _percentage_change(original: float, modified: float) -> float:
    return (modified - original) / original * 100.0 if original > 0 else 0.0

def _quantities_by_key(records: Iterable[Mapping[str, Any]]) -> Dict[tuple, float]:
    totals = defaultdict(float)
    for record in records:
        key = (record['demand_date'], record['product_id'], record['customer_id'])
        totals[key] += float(record['quantity'])
    return totals

class ComparisonService:
    """Compares working demand against the original ingested demand."""

    def __init__(self, store: DemandStore):
        """Initialize the comparison service.

        Args:
            store: Demand store
        """
        self.store = store

    def summarize(self) -> Dict[str, Any]:
        """Summarize how far the working table has drifted from the original.

        Records are matched on (demand_date, product_id, customer_id); a key
        present on one side only counts with quantity 0 on the other.

        Returns:
            Dictionary with totals, difference, percentage change, changed and
            total record counts, and product_month_differences
        """
        original = list(self.store.original_records())
        working = list(self.store.working_records())

        total_original = sum(float(r['quantity']) for r in original)
        total_modified = sum(float(r['quantity']) for r in working)
        difference = total_modified - total_original

        original_by_key = _quantities_by_key(original)
        working_by_key = _quantities_by_key(working)
        keys = set(original_by_key) | set(working_by_key)
        records_changed = sum(
            1 for key in keys
            if _differs(original_by_key.get(key, 0.0), working_by_key.get(key, 0.0))
        )

        original_monthly = {(r['period'], r['product_id']): r for r in aggregate_by_month(original)}
        working_monthly = {(r['period'], r['product_id']): r for r in aggregate_by_month(working)}

        differences = []
        for key in set(original_monthly) | set(working_monthly):
            original_row = original_monthly.get(key)
            working_row = working_monthly.get(key)
            original_quantity = original_row['quantity'] if original_row else 0.0
            modified_quantity = working_row['quantity'] if working_row else 0.0
            if not _differs(original_quantity, modified_quantity):
                continue

            period, product_id = key
            differences.append({
                'product_id': product_id,
                'product_name': (original_row or working_row)['product_name'],
                'year': period.year,
                'month': period.month,
                'month_name': month_name(period.month),
                'original_quantity': original_quantity,
                'modified_quantity': modified_quantity,
                'difference': modified_quantity - original_quantity,
                'percentage_change': _percentage_change(original_quantity, modified_quantity)
            })

        differences.sort(key=lambda d: (d['product_name'], d['year'], d['month']))
        logger.info(f"Compared demand: {records_changed} of {len(keys)} records changed")

        return {
            'total_original': total_original,
            'total_modified': total_modified,
            'difference': difference,
            'percentage_change': _percentage_change(total_original, total_modified),
            'records_changed': records_changed,
            'records_total': len(keys),
            'product_month_differences': differences
        }
