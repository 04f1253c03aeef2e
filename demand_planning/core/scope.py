# demand_planning/core/scope.py
from typing import Any, Dict, Mapping, Optional

from demand_planning.exceptions import ValidationError
from demand_planning.utils.date_utils import parse_month_year, format_month_year

def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None

class DemandScope:
    """Optional month, product and customer filters over the working demand table.

    Present filters combine with AND; a missing filter places no constraint
    on its dimension, so an empty scope covers every record.
    """

    def __init__(
        self,
        month_year: Optional[str] = None,
        product_id: Optional[str] = None,
        customer_id: Optional[str] = None
    ):
        self.year = None
        self.month = None
        self.month_year = _clean(month_year)
        self.product_id = _clean(product_id)
        self.customer_id = _clean(customer_id)

        if self.month_year is not None:
            try:
                self.year, self.month = parse_month_year(self.month_year)
            except ValueError as e:
                raise ValidationError(str(e), details={'month_year': month_year}) from e
            self.month_year = format_month_year(self.year, self.month)

    @classmethod
    def from_filters(cls, filters: Optional[Mapping[str, Any]] = None) -> 'DemandScope':
        """Build a scope from a mapping with month_year, product_id and customer_id keys."""
        filters = filters or {}
        unknown = set(filters) - {'month_year', 'product_id', 'customer_id'}
        if unknown:
            raise ValidationError(
                f"Unknown filter(s): {', '.join(sorted(unknown))}",
                details={'filters': dict(filters)}
            )
        return cls(
            month_year=filters.get('month_year'),
            product_id=filters.get('product_id'),
            customer_id=filters.get('customer_id')
        )

    @property
    def is_empty(self) -> bool:
        return self.month_year is None and self.product_id is None and self.customer_id is None

    def matches(self, record: Mapping[str, Any]) -> bool:
        """Check a demand record mapping against every present filter."""
        if self.month_year is not None:
            demand_date = record['demand_date']
            if demand_date.year != self.year or demand_date.month != self.month:
                return False
        if self.product_id is not None and record['product_id'] != self.product_id:
            return False
        if self.customer_id is not None and record['customer_id'] != self.customer_id:
            return False
        return True

    def describe(self) -> str:
        """Human-readable rendering of the filter predicate."""
        if self.is_empty:
            return "all records"

        clauses = []
        if self.month_year is not None:
            clauses.append(f"month = {self.month_year}")
        if self.product_id is not None:
            clauses.append(f"product_id = '{self.product_id}'")
        if self.customer_id is not None:
            clauses.append(f"customer_id = '{self.customer_id}'")
        return " AND ".join(clauses)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'month_year': self.month_year,
            'product_id': self.product_id,
            'customer_id': self.customer_id
        }

    def __eq__(self, other):
        if not isinstance(other, DemandScope):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"DemandScope({self.describe()})"
