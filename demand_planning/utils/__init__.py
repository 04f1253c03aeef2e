from .date_utils import parse_month_year, format_month_year, month_start, month_name, convert_to_date
from .validation import validate_demand_record, validate_product_record

__all__ = [
    'parse_month_year',
    'format_month_year',
    'month_start',
    'month_name',
    'convert_to_date',
    'validate_demand_record',
    'validate_product_record'
]
