# demand_planning/models.py
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

class DemandRecordMixin:
    """Columns shared by the original and working demand tables."""

    id = Column(Integer, primary_key=True)
    demand_date = Column(Date, nullable=False)
    product_id = Column(String(50), nullable=False)
    product_name = Column(String(255), nullable=False)
    customer_id = Column(String(50), nullable=False)
    customer_name = Column(String(255), nullable=False)
    quantity = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, server_default=func.now())
    modified_at = Column(DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'demand_date': self.demand_date,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'quantity': self.quantity,
            'created_at': self.created_at,
            'modified_at': self.modified_at
        }

class OriginalDemand(DemandRecordMixin, Base):
    """Demand exactly as ingested. Never mutated by bulk modifications."""
    __tablename__ = 'original_demand'

    __table_args__ = (
        Index('idx_original_demand_product', 'product_id'),
        Index('idx_original_demand_date', 'demand_date'),
    )

class WorkingDemand(DemandRecordMixin, Base):
    """Working copy of the demand history that planners adjust."""
    __tablename__ = 'working_demand'

    __table_args__ = (
        Index('idx_working_demand_product', 'product_id'),
        Index('idx_working_demand_customer', 'customer_id'),
        Index('idx_working_demand_date', 'demand_date'),
    )

class ForecastAggregate(Base):
    """Monthly demand per product, rebuilt in full from working_demand."""
    __tablename__ = 'forecast_aggregate'

    id = Column(Integer, primary_key=True)
    period = Column(Date, nullable=False)  # first day of the month
    product_id = Column(String(50), nullable=False)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        UniqueConstraint('period', 'product_id', 'product_name', name='uq_forecast_aggregate_period_product'),
        Index('idx_forecast_aggregate_product', 'product_id'),
    )

class ProductParameters(Base):
    __tablename__ = 'product_parameters'

    id = Column(Integer, primary_key=True)
    product_id = Column(String(50), nullable=False, unique=True)
    product_name = Column(String(255), nullable=False)

    # Static inputs supplied at ingestion
    cost = Column(Float, default=0.0)
    lead_time_months = Column(Float, default=0.0)
    ordering_cost = Column(Float, default=0.0)
    holding_cost = Column(Float, default=0.0)

    # Derived by forecast processing; NULL marks an ill-posed calculation
    eoq = Column(Float)
    rop = Column(Float)
    ss = Column(Float)
    dl = Column(Float)
    forecast = Column(Float)
    dmd_stdev = Column(Float)

    updated_at = Column(DateTime)

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'cost': self.cost,
            'lead_time_months': self.lead_time_months,
            'ordering_cost': self.ordering_cost,
            'holding_cost': self.holding_cost,
            'eoq': self.eoq,
            'rop': self.rop,
            'ss': self.ss,
            'dl': self.dl,
            'forecast': self.forecast,
            'dmd_stdev': self.dmd_stdev,
            'updated_at': self.updated_at
        }

class UpdateHistoryEntry(Base):
    """Audit row written once per committed bulk modification."""
    __tablename__ = 'update_history'

    id = Column(Integer, primary_key=True)
    month_year = Column(String(7))  # YYYY-MM
    product_id = Column(String(50))
    customer_id = Column(String(50))
    percentage = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    records_affected = Column(Integer, nullable=False)
    change_summary = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index('idx_update_history_created', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'month_year': self.month_year,
            'product_id': self.product_id,
            'customer_id': self.customer_id,
            'percentage': self.percentage,
            'description': self.description,
            'records_affected': self.records_affected,
            'change_summary': self.change_summary,
            'created_at': self.created_at
        }
