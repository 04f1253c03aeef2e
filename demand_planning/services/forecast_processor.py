# demand_planning/services/forecast_processor.py
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from demand_planning.config import config
from demand_planning.core.aggregation import group_quantities_by_product
from demand_planning.core.inventory_parameters import calculate_inventory_parameters
from demand_planning.core.robust_estimator import huber_estimate
from demand_planning.exceptions import ForecastError
from demand_planning.storage.interface import DemandStore
from demand_planning.logging_setup import get_logger, logger as log_manager

logger = get_logger(__name__)

def _as_float(value) -> float:
    return math.nan if value is None else float(value)

class ForecastProcessor:
    """Derives forecast, demand variability and inventory parameters per product."""

    def __init__(self, store: DemandStore, forecast_settings: Optional[Dict[str, Any]] = None):
        """Initialize the processor.

        Args:
            store: Demand store
            forecast_settings: Estimator and service level settings; defaults
                to the FORECAST config section
        """
        self.store = store
        self.settings = forecast_settings or config.forecast_config

    def estimate(self, quantities: List[float]):
        """Robust (forecast, dmd_stdev) for one product's monthly quantities."""
        finite = [q for q in quantities if math.isfinite(q)]
        if len(finite) != len(quantities):
            logger.warning(f"Ignoring {len(quantities) - len(finite)} non-finite aggregate quantities")

        return huber_estimate(
            finite,
            k=self.settings['huber_k'],
            max_iterations=self.settings['max_iterations'],
            tolerance=self.settings['tolerance'],
            scale_floor=self.settings['scale_floor'],
            mad_consistency=self.settings['mad_consistency']
        )

    def process_product(
        self,
        product_id: str,
        product_name: str,
        quantities: List[float],
        inputs: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Calculate forecast and dependent parameters for one product.

        Args:
            product_id: Product ID
            product_name: Product name from the aggregate
            quantities: Monthly aggregate quantities
            inputs: Stored cost and lead time inputs, None if the product has no parameters row

        Returns:
            Dictionary with the estimate and, when inputs exist, dl, eoq, ss and rop
        """
        forecast, dmd_stdev = self.estimate(quantities)

        result = {
            'product_id': product_id,
            'product_name': product_name,
            'periods': len(quantities),
            'forecast': forecast,
            'dmd_stdev': dmd_stdev,
            'dl': None,
            'eoq': None,
            'ss': None,
            'rop': None
        }

        if inputs is None:
            return result

        parameters = calculate_inventory_parameters(
            forecast,
            dmd_stdev,
            lead_time_months=_as_float(inputs['lead_time_months']),
            ordering_cost=_as_float(inputs['ordering_cost']),
            holding_cost=_as_float(inputs['holding_cost']),
            z_score=self.settings['service_level_z']
        )

        invalid = [name for name, value in parameters.items() if math.isnan(value)]
        if invalid:
            logger.warning(
                f"Product {product_id}: {', '.join(invalid)} undefined for "
                f"lead_time_months={inputs['lead_time_months']}, "
                f"ordering_cost={inputs['ordering_cost']}, holding_cost={inputs['holding_cost']}"
            )

        result.update(parameters)
        return result

    def run(self) -> Dict[str, Any]:
        """Process every product present in the forecast aggregate.

        Reads the aggregate and the product inputs once, estimates each
        product independently and writes all results in one batch.

        Returns:
            Dictionary with per-product results and processed, persisted and
            skipped counts
        """
        log_info = log_manager.batch_start_log('forecast_processing')

        try:
            with self.store.transaction():
                grouped = group_quantities_by_product(self.store.read_aggregate())
                inputs = self.store.product_inputs()

                results = []
                updates = []
                for product_id, entry in grouped.items():
                    product_inputs = inputs.get(product_id)
                    result = self.process_product(
                        product_id, entry['product_name'], entry['quantities'], product_inputs
                    )
                    result['persisted'] = product_inputs is not None
                    if product_inputs is None:
                        logger.warning(f"Product {product_id} has no parameter record; results not persisted")
                    else:
                        updates.append(result)
                    results.append(result)

                persisted = self.store.write_product_parameters(updates, datetime.now())
        except Exception as e:
            log_manager.batch_end_log(log_info, success=False, result_info={'error': str(e)})
            raise ForecastError(f"Forecast processing failed: {str(e)}") from e

        summary = {
            'processed': len(results),
            'persisted': persisted,
            'skipped': len(results) - len(updates)
        }
        log_manager.batch_end_log(log_info, success=True, result_info=summary)

        summary['results'] = results
        return summary

def run_forecast_processing(store: DemandStore) -> Dict[str, Any]:
    """Run forecast processing over every product in the aggregate."""
    return ForecastProcessor(store).run()
