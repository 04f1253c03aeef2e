from .robust_estimator import huber_estimate, median, median_absolute_deviation
from .inventory_parameters import (
    calculate_inventory_parameters, calculate_eoq, calculate_safety_stock,
    calculate_lead_time_demand
)
from .aggregation import aggregate_by_month, group_quantities_by_product
from .scope import DemandScope

__all__ = [
    'huber_estimate',
    'median',
    'median_absolute_deviation',
    'calculate_inventory_parameters',
    'calculate_eoq',
    'calculate_safety_stock',
    'calculate_lead_time_demand',
    'aggregate_by_month',
    'group_quantities_by_product',
    'DemandScope'
]
