# demand_planning/core/aggregation.py
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping

from demand_planning.utils.date_utils import month_start

def aggregate_by_month(records: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Project demand records onto monthly totals per product.

    Groups by (first day of the demand month, product_id, product_name) and
    sums quantity. The result depends only on the input rows, so projecting
    the same working table twice yields the same aggregate.

    Args:
        records: Mappings with demand_date, product_id, product_name and quantity

    Returns:
        Aggregate rows sorted by period, product_id and product_name
    """
    totals = defaultdict(float)
    for record in records:
        key = (month_start(record['demand_date']), record['product_id'], record['product_name'])
        totals[key] += float(record['quantity'])

    return [
        {
            'period': period,
            'product_id': product_id,
            'product_name': product_name,
            'quantity': quantity
        }
        for (period, product_id, product_name), quantity in sorted(totals.items())
    ]

def group_quantities_by_product(aggregate_rows: Iterable[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Collect the monthly quantities of each product from aggregate rows.

    Returns:
        Dictionary keyed by product_id with product_name and quantities
    """
    grouped = {}
    for row in aggregate_rows:
        entry = grouped.setdefault(
            row['product_id'],
            {'product_name': row['product_name'], 'quantities': []}
        )
        entry['quantities'].append(float(row['quantity']))
    return grouped
