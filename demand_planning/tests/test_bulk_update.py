"""
Tests for the bulk modification transaction.
"""
import math
import unittest
from datetime import datetime
from unittest.mock import patch

import pytest

from demand_planning.exceptions import (
    NotFoundError, TransactionError, ValidationError
)
from demand_planning.services.aggregation_service import ForecastAggregator
from demand_planning.services.bulk_update_service import (
    BulkModificationTransaction, TransactionState, apply_bulk_percentage_change
)
from demand_planning.tests.fakes import InMemoryDemandStore, demand_row

def _store():
    rows = [
        demand_row('2024-01-05', 'P1', 100, customer_id='C1'),
        demand_row('2024-01-12', 'P1', 120, customer_id='C2'),
        demand_row('2024-01-28', 'P1', 80, customer_id='C3'),
        demand_row('2024-02-10', 'P2', 40, customer_id='C1'),
        demand_row('2024-03-10', 'P2', 60, customer_id='C2')
    ]
    return InMemoryDemandStore(working=rows, original=rows)

def _quantities(store, product_id=None):
    return [r['quantity'] for r in store.working if product_id is None or r['product_id'] == product_id]

class TestBulkModificationTransaction(unittest.TestCase):
    """Test cases for BulkModificationTransaction."""

    def setUp(self):
        self.store = _store()

    def test_scales_scoped_rows_and_rebuilds_aggregate(self):
        """Test scales scoped rows and rebuilds aggregate."""
        result = apply_bulk_percentage_change(
            self.store, {'product_id': 'P1'}, 10, 'Promotion uplift'
        )

        self.assertEqual(result['records_affected'], 3)
        self.assertAlmostEqual(result['multiplier'], 1.1)
        for actual, expected in zip(_quantities(self.store, 'P1'), [110.0, 132.0, 88.0]):
            self.assertAlmostEqual(actual, expected)
        self.assertEqual(_quantities(self.store, 'P2'), [40.0, 60.0])

        january = [r for r in self.store.aggregate if r['product_id'] == 'P1']
        self.assertEqual(len(january), 1)
        self.assertAlmostEqual(january[0]['quantity'], 330.0)
        self.assertEqual(result['aggregate_rows'], 3)
        self.assertEqual(self.store.commits, 1)

    def test_empty_filter_scales_every_row(self):
        """Test empty filter scales every row."""
        before = sum(_quantities(self.store))
        result = apply_bulk_percentage_change(self.store, {}, -20, 'Market slowdown')

        self.assertEqual(result['records_affected'], 5)
        self.assertAlmostEqual(sum(_quantities(self.store)), before * 0.8)
        self.assertAlmostEqual(sum(r['quantity'] for r in self.store.aggregate), before * 0.8)
        self.assertEqual(
            result['change_summary'],
            "Scaled quantity by 0.8 (-20%) on 5 record(s) of all working demand records"
        )

    def test_records_outside_scope_untouched(self):
        """Test records outside scope untouched."""
        apply_bulk_percentage_change(
            self.store, {'month_year': '2024-01', 'customer_id': 'C2'}, 50, 'Key account'
        )
        self.assertEqual(_quantities(self.store), [100.0, 180.0, 80.0, 40.0, 60.0])

    def test_original_table_is_never_modified(self):
        """Test original table is never modified."""
        apply_bulk_percentage_change(self.store, None, 25, 'Uplift')
        self.assertEqual([r['quantity'] for r in self.store.original], [100.0, 120.0, 80.0, 40.0, 60.0])

    def test_minus_one_hundred_zeroes_scope(self):
        """Test minus one hundred zeroes scope."""
        result = apply_bulk_percentage_change(self.store, {'product_id': 'P2'}, -100, 'Discontinued')
        self.assertEqual(result['records_affected'], 2)
        self.assertEqual(_quantities(self.store, 'P2'), [0.0, 0.0])

    def test_audit_entry_is_complete(self):
        """Test audit entry is complete."""
        result = apply_bulk_percentage_change(
            self.store, {'month_year': '2024-01', 'product_id': 'P1'}, 5, '  Seasonal  '
        )

        self.assertEqual(len(self.store.history), 1)
        entry = self.store.history[0]
        self.assertEqual(entry['id'], result['history_id'])
        self.assertEqual(entry['month_year'], '2024-01')
        self.assertEqual(entry['product_id'], 'P1')
        self.assertIsNone(entry['customer_id'])
        self.assertEqual(entry['percentage'], 5.0)
        self.assertEqual(entry['description'], 'Seasonal')
        self.assertEqual(entry['records_affected'], 3)
        self.assertEqual(entry['change_summary'], result['change_summary'])
        self.assertIn("month = 2024-01 AND product_id = 'P1'", entry['change_summary'])

        modified = [r['modified_at'] for r in self.store.working if r['product_id'] == 'P1']
        self.assertEqual(set(modified), {entry['created_at']})

    def test_state_sequence_on_commit(self):
        """Test state sequence on commit."""
        transaction = BulkModificationTransaction(self.store, {}, 10, 'Uplift')
        transaction.execute()

        self.assertEqual(transaction.transitions, [
            TransactionState.VALIDATING,
            TransactionState.SCOPING,
            TransactionState.COUNTING,
            TransactionState.UPDATING,
            TransactionState.AUDITING,
            TransactionState.REBUILDING_AGGREGATE,
            TransactionState.COMMITTED
        ])
        self.assertEqual(transaction.state, TransactionState.COMMITTED)

    def test_no_matching_rows_rolls_back(self):
        """Test no matching rows rolls back."""
        with self.assertRaises(NotFoundError) as ctx:
            apply_bulk_percentage_change(self.store, {'customer_id': 'C99'}, 10, 'Nobody')

        self.assertEqual(ctx.exception.code, 'NOT_FOUND')
        self.assertEqual(_quantities(self.store), [100.0, 120.0, 80.0, 40.0, 60.0])
        self.assertEqual(self.store.history, [])
        self.assertEqual(self.store.rollbacks, 1)
        self.assertEqual(self.store.commits, 0)

    def test_zero_match_keeps_existing_aggregate(self):
        """Test zero match keeps existing aggregate."""
        ForecastAggregator(self.store).rebuild()
        aggregate = self.store.read_aggregate()

        with self.assertRaises(NotFoundError):
            apply_bulk_percentage_change(self.store, {'month_year': '2023-06'}, 10, 'Nothing there')

        self.assertEqual(self.store.read_aggregate(), aggregate)
        self.assertEqual([r['modified_at'] for r in self.store.working], [None] * 5)

    def test_timestamp_taken_inside_transaction(self):
        """Test timestamp taken inside transaction."""
        seen = []

        def now():
            seen.append(self.store.in_transaction)
            return datetime(2024, 6, 1, 12, 0)

        with patch('demand_planning.services.bulk_update_service.datetime') as mock_datetime:
            mock_datetime.now.side_effect = now
            apply_bulk_percentage_change(self.store, {'product_id': 'P2'}, 10, 'Uplift')

        self.assertEqual(seen, [True])
        self.assertEqual(self.store.history[0]['created_at'], datetime(2024, 6, 1, 12, 0))
        self.assertEqual(
            [r['modified_at'] for r in self.store.working if r['product_id'] == 'P2'],
            [datetime(2024, 6, 1, 12, 0)] * 2
        )

    def test_aggregate_failure_rolls_back_everything(self):
        """Test aggregate failure rolls back everything."""
        with patch.object(self.store, 'replace_aggregate', side_effect=RuntimeError('disk full')):
            transaction = BulkModificationTransaction(self.store, {'product_id': 'P1'}, 10, 'Uplift')
            with self.assertRaises(TransactionError) as ctx:
                transaction.execute()

        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(transaction.state, TransactionState.ABORTED)
        self.assertEqual(transaction.transitions[-2], TransactionState.REBUILDING_AGGREGATE)
        self.assertEqual(_quantities(self.store), [100.0, 120.0, 80.0, 40.0, 60.0])
        self.assertEqual(self.store.history, [])
        self.assertEqual(self.store.rollbacks, 1)

    def test_row_count_mismatch_rolls_back(self):
        """Test row count mismatch rolls back."""
        with patch.object(self.store, 'scale_working', return_value=99):
            with self.assertRaises(TransactionError) as ctx:
                apply_bulk_percentage_change(self.store, {}, 10, 'Uplift')

        self.assertEqual(ctx.exception.details, {'counted': 5, 'updated': 99})
        self.assertEqual(self.store.history, [])
        self.assertEqual(self.store.rollbacks, 1)

class TestBulkModificationValidation(unittest.TestCase):
    """Rejected arguments never open a store transaction."""

    def setUp(self):
        self.store = _store()

    def _assert_rejected(self, filters, percentage, description):
        transaction = BulkModificationTransaction(self.store, filters, percentage, description)
        with self.assertRaises(ValidationError) as ctx:
            transaction.execute()
        self.assertEqual(ctx.exception.code, 'INVALID_ARGUMENT')
        self.assertEqual(transaction.transitions, [TransactionState.VALIDATING, TransactionState.ABORTED])
        self.assertEqual(self.store.commits + self.store.rollbacks, 0)
        self.assertEqual(_quantities(self.store), [100.0, 120.0, 80.0, 40.0, 60.0])

    def test_zero_percentage(self):
        """Test zero percentage."""
        self._assert_rejected({}, 0, 'Nothing')

    def test_below_minus_one_hundred(self):
        """Test below minus one hundred."""
        self._assert_rejected({}, -100.5, 'Too much')

    def test_non_numeric_percentage(self):
        """Test non numeric percentage."""
        for value in ('ten', None, True, math.nan, math.inf):
            self._assert_rejected({}, value, 'Bad value')

    def test_missing_description(self):
        """Test missing description."""
        for value in ('', '   ', None):
            self._assert_rejected({}, 10, value)

    def test_bad_month_filter(self):
        """Test bad month filter."""
        self._assert_rejected({'month_year': '2024-13'}, 10, 'Bad month')

    def test_unknown_filter(self):
        """Test unknown filter."""
        self._assert_rejected({'warehouse': 'W1'}, 10, 'Unknown')

    def test_configured_minimum(self):
        """Test configured minimum."""
        transaction = BulkModificationTransaction(self.store, {}, -60, 'Cut', min_percentage=-50)
        with self.assertRaises(ValidationError):
            transaction.execute()

@pytest.mark.parametrize('filters, expected', [
    ({}, 5),
    ({'month_year': '2024-01'}, 3),
    ({'product_id': 'P2'}, 2),
    ({'customer_id': 'C1'}, 2),
    ({'month_year': '2024-01', 'product_id': 'P1'}, 3),
    ({'month_year': '2024-02', 'customer_id': 'C1'}, 1),
    ({'product_id': 'P2', 'customer_id': 'C2'}, 1),
    ({'month_year': '2024-03', 'product_id': 'P2', 'customer_id': 'C2'}, 1),
])
def test_filter_combinations(filters, expected):
    """Test filter combinations."""
    store = _store()
    result = apply_bulk_percentage_change(store, filters, 10, 'Scoped change')

    assert result['records_affected'] == expected
    changed = [r for r, o in zip(store.working, store.original) if r['quantity'] != o['quantity']]
    assert len(changed) == expected

if __name__ == '__main__':
    unittest.main()
