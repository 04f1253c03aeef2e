# demand_planning/core/inventory_parameters.py
import math
from typing import Dict

from demand_planning.exceptions import NumericDomainError

# z-score for a 95% cycle service level
SERVICE_LEVEL_Z = 1.96

def calculate_lead_time_demand(forecast: float, lead_time_months: float) -> float:
    """Demand expected during the replenishment lead time."""
    return forecast * lead_time_months

def calculate_eoq(
    forecast: float,
    ordering_cost: float,
    holding_cost: float,
    strict: bool = False
) -> float:
    """Calculate the economic order quantity.

    EOQ = sqrt(2 * D * S / H)

    Args:
        forecast: Demand per period (D)
        ordering_cost: Cost per order (S)
        holding_cost: Holding cost per unit and period (H)
        strict: Raise instead of returning NaN for ill-posed input

    Returns:
        EOQ, or NaN when holding_cost <= 0 or the radicand is negative
    """
    if holding_cost is None or not holding_cost > 0:
        if strict:
            raise NumericDomainError(
                f"Holding cost must be positive to calculate EOQ, got {holding_cost}",
                details={'holding_cost': holding_cost}
            )
        return math.nan

    radicand = 2.0 * forecast * ordering_cost / holding_cost
    if radicand < 0:
        if strict:
            raise NumericDomainError(
                "Negative EOQ radicand",
                details={'forecast': forecast, 'ordering_cost': ordering_cost}
            )
        return math.nan

    return math.sqrt(radicand)

def calculate_safety_stock(
    dmd_stdev: float,
    lead_time_months: float,
    z_score: float = SERVICE_LEVEL_Z,
    strict: bool = False
) -> float:
    """Calculate safety stock in units.

    SS = z * sigma * sqrt(LT)

    Args:
        dmd_stdev: Demand variability per period
        lead_time_months: Lead time in periods
        z_score: Service level z-score
        strict: Raise instead of returning NaN for a negative lead time

    Returns:
        Safety stock units, or NaN for a negative lead time
    """
    if lead_time_months < 0:
        if strict:
            raise NumericDomainError(
                f"Lead time cannot be negative, got {lead_time_months}",
                details={'lead_time_months': lead_time_months}
            )
        return math.nan

    return z_score * dmd_stdev * math.sqrt(lead_time_months)

def calculate_inventory_parameters(
    forecast: float,
    dmd_stdev: float,
    lead_time_months: float,
    ordering_cost: float,
    holding_cost: float,
    z_score: float = SERVICE_LEVEL_Z,
    strict: bool = False
) -> Dict[str, float]:
    """Derive the inventory parameters that depend on a demand estimate.

    Args:
        forecast: Forecast demand per month
        dmd_stdev: Demand variability per month
        lead_time_months: Replenishment lead time in months
        ordering_cost: Cost per order
        holding_cost: Holding cost per unit and month
        z_score: Service level z-score used for safety stock
        strict: Raise NumericDomainError instead of producing NaN sentinels

    Returns:
        Dictionary with dl, eoq, ss and rop
    """
    dl = calculate_lead_time_demand(forecast, lead_time_months)
    eoq = calculate_eoq(forecast, ordering_cost, holding_cost, strict=strict)
    ss = calculate_safety_stock(dmd_stdev, lead_time_months, z_score=z_score, strict=strict)

    return {
        'dl': dl,
        'eoq': eoq,
        'ss': ss,
        'rop': ss + dl
    }
