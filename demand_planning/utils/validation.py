import math
from typing import Any, Dict, Mapping

from demand_planning.utils.date_utils import convert_to_date

DEMAND_TEXT_FIELDS = ('product_id', 'product_name', 'customer_id', 'customer_name')
PRODUCT_NUMERIC_FIELDS = (
    'cost', 'lead_time_months', 'ordering_cost', 'holding_cost',
    'eoq', 'rop', 'ss', 'dl', 'forecast', 'dmd_stdev'
)
# Derived fields may be missing at ingestion; forecast processing fills them in
PRODUCT_OPTIONAL_FIELDS = ('eoq', 'rop', 'ss', 'dl', 'forecast', 'dmd_stdev')

def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False

def validate_demand_record(row: Mapping[str, Any]) -> Dict[str, str]:
    """Validate a parsed demand row.

    Args:
        row: Mapping with demand_date, product and customer ids/names and quantity

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    for field in DEMAND_TEXT_FIELDS:
        if not str(row.get(field) or '').strip():
            errors[field] = f'{field} is required'

    try:
        convert_to_date(row.get('demand_date'))
    except ValueError:
        errors['demand_date'] = 'Invalid date format'

    quantity = row.get('quantity')
    if not _is_finite_number(quantity) or float(quantity) < 0:
        errors['quantity'] = 'Quantity must be a non-negative number'

    return errors

def validate_product_record(row: Mapping[str, Any]) -> Dict[str, str]:
    """Validate a parsed product row.

    Args:
        row: Mapping with product_id, product_name and the numeric product fields

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    for field in ('product_id', 'product_name'):
        if not str(row.get(field) or '').strip():
            errors[field] = f'{field} is required'

    for field in PRODUCT_NUMERIC_FIELDS:
        value = row.get(field)
        if value is None and field in PRODUCT_OPTIONAL_FIELDS:
            continue
        if not _is_finite_number(value):
            errors[field] = f'{field} must be a number, got {value!r}'

    return errors
