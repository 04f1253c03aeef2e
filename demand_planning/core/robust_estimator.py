# demand_planning/core/robust_estimator.py
from typing import Iterable, Tuple

import numpy as np

from demand_planning.logging_setup import get_logger

logger = get_logger(__name__)

HUBER_K = 1.345
MAX_ITERATIONS = 100
TOLERANCE = 1e-6
SCALE_FLOOR = 0.001
# Makes MAD a consistent estimator of the standard deviation for normal data
MAD_CONSISTENCY = 1.4826

def median(values: Iterable[float]) -> float:
    """Median of a sequence of numbers.

    Args:
        values: Numbers, in any order

    Returns:
        Median value, 0.0 for an empty sequence
    """
    data = np.asarray(list(values), dtype=float)
    if data.size == 0:
        return 0.0
    return float(np.median(data))

def median_absolute_deviation(
    values: Iterable[float],
    center: float,
    consistency: float = MAD_CONSISTENCY
) -> float:
    """Scaled median absolute deviation of values around center.

    Args:
        values: Numbers, in any order
        center: Point the deviations are measured from
        consistency: Scale factor applied to the raw MAD

    Returns:
        consistency * median(|x - center|)
    """
    data = np.asarray(list(values), dtype=float)
    if data.size == 0:
        return 0.0
    return float(np.median(np.abs(data - center))) * consistency

def huber_estimate(
    samples: Iterable[float],
    k: float = HUBER_K,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    scale_floor: float = SCALE_FLOOR,
    mad_consistency: float = MAD_CONSISTENCY
) -> Tuple[float, float]:
    """Robust location and scale of samples using Huber's M-estimator.

    Starts from the median and the scaled MAD, then reweights iteratively:
    samples whose standardized residual exceeds k get weight k / residual,
    the rest weight 1. Location becomes the weighted mean of the samples and
    scale the weighted mean of the absolute residuals. Iteration stops when
    both move by less than tolerance, or after max_iterations.

    A zero scale (identical samples, or more than half of them equal) is
    replaced by scale_floor so standardization never divides by zero.

    Args:
        samples: Finite observations; non-finite values must be removed by the caller
        k: Huber tuning constant
        max_iterations: Hard iteration bound
        tolerance: Convergence threshold for location and scale
        scale_floor: Value substituted for a zero scale
        mad_consistency: MAD scale factor for the initial scale

    Returns:
        Tuple of (location, scale); (0.0, 0.0) for no samples
    """
    data = np.sort(np.asarray(list(samples), dtype=float))
    if data.size == 0:
        return 0.0, 0.0

    location = median(data)
    scale = median_absolute_deviation(data, location, mad_consistency)
    if scale == 0:
        scale = scale_floor

    iterations = 0
    for iterations in range(1, max_iterations + 1):
        previous_location = location
        previous_scale = scale

        residuals = np.abs(data - location) / scale
        # np.maximum keeps the discarded branch of np.where free of zero division
        weights = np.where(residuals <= k, 1.0, k / np.maximum(residuals, k))
        weight_sum = float(weights.sum())

        location = float(np.dot(weights, data) / weight_sum)
        scale = float(np.dot(weights, np.abs(data - location)) / weight_sum)
        if scale == 0:
            scale = scale_floor

        if abs(location - previous_location) < tolerance and abs(scale - previous_scale) < tolerance:
            break

    # Weighted means stay inside the sample range; clip float round-off
    location = min(max(location, float(data[0])), float(data[-1]))

    logger.debug(
        f"Huber estimate over {data.size} samples: location={location}, "
        f"scale={scale}, iterations={iterations}"
    )
    return location, scale
