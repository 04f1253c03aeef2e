# demand_planning/storage/sqlalchemy_store.py
import math
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import extract, func, insert
from sqlalchemy.orm import Session

from demand_planning.core.scope import DemandScope
from demand_planning.models import (
    OriginalDemand, WorkingDemand, ForecastAggregate, ProductParameters, UpdateHistoryEntry
)
from demand_planning.storage.interface import DemandStore
from demand_planning.logging_setup import get_logger

logger = get_logger(__name__)

DERIVED_FIELDS = ('forecast', 'dmd_stdev', 'dl', 'eoq', 'ss', 'rop')

def _finite_or_none(value):
    """NaN and infinity are stored as NULL."""
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None

class SqlAlchemyDemandStore(DemandStore):
    """DemandStore backed by a SQLAlchemy session."""

    def __init__(self, session: Session, batch_size: int = 1000):
        """Initialize the store.

        Args:
            session: Database session
            batch_size: Rows fetched per round trip when streaming tables
        """
        self.session = session
        self.batch_size = batch_size

    @contextmanager
    def transaction(self):
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _scope_conditions(self, scope: DemandScope) -> list:
        """Translate a scope into bound SQL conditions on working_demand."""
        conditions = []
        if scope.month_year is not None:
            conditions.append(extract('year', WorkingDemand.demand_date) == scope.year)
            conditions.append(extract('month', WorkingDemand.demand_date) == scope.month)
        if scope.product_id is not None:
            conditions.append(WorkingDemand.product_id == scope.product_id)
        if scope.customer_id is not None:
            conditions.append(WorkingDemand.customer_id == scope.customer_id)
        return conditions

    def count_working(self, scope: DemandScope) -> int:
        count = self.session.query(func.count(WorkingDemand.id)).filter(
            *self._scope_conditions(scope)
        ).scalar()
        return int(count or 0)

    def scale_working(self, scope: DemandScope, multiplier: float, modified_at: datetime) -> int:
        return self.session.query(WorkingDemand).filter(
            *self._scope_conditions(scope)
        ).update(
            {
                WorkingDemand.quantity: WorkingDemand.quantity * multiplier,
                WorkingDemand.modified_at: modified_at
            },
            synchronize_session=False
        )

    def append_audit(self, entry: Dict[str, Any]) -> int:
        history = UpdateHistoryEntry(**entry)
        self.session.add(history)
        self.session.flush()
        return history.id

    def _stream(self, model) -> Iterator[Dict[str, Any]]:
        query = self.session.query(model).order_by(model.id).yield_per(self.batch_size)
        for row in query:
            yield row.to_dict()

    def working_records(self) -> Iterator[Dict[str, Any]]:
        return self._stream(WorkingDemand)

    def original_records(self) -> Iterator[Dict[str, Any]]:
        return self._stream(OriginalDemand)

    def replace_aggregate(self, rows: Iterable[Dict[str, Any]]) -> int:
        self.session.query(ForecastAggregate).delete(synchronize_session=False)

        rows = [
            {
                'period': row['period'],
                'product_id': row['product_id'],
                'product_name': row['product_name'],
                'quantity': row['quantity']
            }
            for row in rows
        ]
        if rows:
            self.session.execute(insert(ForecastAggregate), rows)
        return len(rows)

    def rebuild_aggregate(self) -> int:
        year = extract('year', WorkingDemand.demand_date)
        month = extract('month', WorkingDemand.demand_date)
        totals = self.session.query(
            year.label('year'),
            month.label('month'),
            WorkingDemand.product_id,
            WorkingDemand.product_name,
            func.sum(WorkingDemand.quantity).label('quantity')
        ).group_by(year, month, WorkingDemand.product_id, WorkingDemand.product_name).all()

        rows = [
            {
                'period': date(int(row.year), int(row.month), 1),
                'product_id': row.product_id,
                'product_name': row.product_name,
                'quantity': float(row.quantity)
            }
            for row in totals
        ]
        rows.sort(key=lambda r: (r['period'], r['product_id'], r['product_name']))
        return self.replace_aggregate(rows)

    def read_aggregate(self) -> List[Dict[str, Any]]:
        rows = self.session.query(
            ForecastAggregate.period,
            ForecastAggregate.product_id,
            ForecastAggregate.product_name,
            ForecastAggregate.quantity
        ).order_by(ForecastAggregate.product_id, ForecastAggregate.period).all()

        return [
            {
                'period': row.period,
                'product_id': row.product_id,
                'product_name': row.product_name,
                'quantity': row.quantity
            }
            for row in rows
        ]

    def product_inputs(self) -> Dict[str, Dict[str, Any]]:
        products = self.session.query(ProductParameters).all()
        return {
            product.product_id: {
                'product_name': product.product_name,
                'cost': product.cost,
                'lead_time_months': product.lead_time_months,
                'ordering_cost': product.ordering_cost,
                'holding_cost': product.holding_cost
            }
            for product in products
        }

    def write_product_parameters(self, updates: List[Dict[str, Any]], updated_at: datetime) -> int:
        if not updates:
            return 0

        product_ids = [update['product_id'] for update in updates]
        products = {
            product.product_id: product
            for product in self.session.query(ProductParameters).filter(
                ProductParameters.product_id.in_(product_ids)
            )
        }

        written = 0
        for update in updates:
            product = products.get(update['product_id'])
            if product is None:
                continue
            for field in DERIVED_FIELDS:
                setattr(product, field, _finite_or_none(update[field]))
            product.updated_at = updated_at
            written += 1

        # One flush issues the updates as a batch
        self.session.flush()
        return written

    def list_update_history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = self.session.query(UpdateHistoryEntry).order_by(
            UpdateHistoryEntry.created_at.desc(), UpdateHistoryEntry.id.desc()
        )
        if limit:
            query = query.limit(limit)
        return [entry.to_dict() for entry in query.all()]

    def replace_dataset(
        self,
        demand_rows: List[Dict[str, Any]],
        product_rows: List[Dict[str, Any]]
    ) -> Tuple[int, int]:
        for model in (OriginalDemand, WorkingDemand, ProductParameters, ForecastAggregate):
            deleted = self.session.query(model).delete(synchronize_session=False)
            logger.debug(f"Deleted {deleted} rows from {model.__tablename__}")

        now = datetime.now()
        demand_rows = [dict(row, created_at=now) for row in demand_rows]
        product_rows = [dict(row, updated_at=now) for row in product_rows]

        if demand_rows:
            self.session.execute(insert(OriginalDemand), demand_rows)
            self.session.execute(insert(WorkingDemand), demand_rows)
        if product_rows:
            self.session.execute(insert(ProductParameters), product_rows)

        return len(demand_rows), len(product_rows)
