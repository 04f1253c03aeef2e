"""
Unit tests for the Huber M-estimator.
"""
import unittest

from demand_planning.core.robust_estimator import (
    huber_estimate, median, median_absolute_deviation, SCALE_FLOOR
)

class TestMedianHelpers(unittest.TestCase):
    """Test cases for the median and MAD helpers."""

    def test_median_odd_and_even(self):
        """Test median odd and even."""
        self.assertEqual(median([3, 1, 2]), 2.0)
        self.assertEqual(median([4, 1, 3, 2]), 2.5)

    def test_median_empty(self):
        """Test median empty."""
        self.assertEqual(median([]), 0.0)

    def test_median_absolute_deviation(self):
        """Test median absolute deviation."""
        # |x - 3| = [2, 1, 0, 1, 97] -> median 1
        self.assertAlmostEqual(median_absolute_deviation([1, 2, 3, 4, 100], 3.0), 1.4826)
        self.assertAlmostEqual(
            median_absolute_deviation([1, 2, 3, 4, 100], 3.0, consistency=1.0), 1.0
        )

class TestHuberEstimate(unittest.TestCase):
    """Test cases for huber_estimate."""

    def test_empty_input(self):
        """Test empty input."""
        self.assertEqual(huber_estimate([]), (0.0, 0.0))

    def test_identical_samples_floor_the_scale(self):
        """Test identical samples floor the scale."""
        location, scale = huber_estimate([5, 5, 5])
        self.assertEqual(location, 5.0)
        self.assertEqual(scale, SCALE_FLOOR)

    def test_single_sample(self):
        """Test single sample."""
        location, scale = huber_estimate([330])
        self.assertEqual(location, 330.0)
        self.assertEqual(scale, SCALE_FLOOR)

    def test_outlier_resistance(self):
        """Test outlier resistance."""
        samples = [10, 10, 10, 10, 1000]
        location, scale = huber_estimate(samples)

        arithmetic_mean = sum(samples) / len(samples)
        self.assertAlmostEqual(arithmetic_mean, 208.0)
        self.assertLess(location, 20)
        self.assertGreaterEqual(location, 10)
        self.assertGreaterEqual(scale, 0)

    def test_symmetric_data_keeps_center(self):
        """Test symmetric data keeps center."""
        location, scale = huber_estimate([1, 2, 3, 4, 5])
        self.assertAlmostEqual(location, 3.0, places=6)
        self.assertGreater(scale, 0)

    def test_order_does_not_matter(self):
        """Test order does not matter."""
        self.assertEqual(huber_estimate([7, 1, 12, 3, 9]), huber_estimate([1, 3, 7, 9, 12]))

    def test_location_within_sample_range(self):
        """Test location within sample range."""
        for samples in ([0, 0, 0, 1], [2.5, 100.0, 3.0, 2.0, 2.75], [-4, 8, 15, 16, 23, 42]):
            location, scale = huber_estimate(samples)
            self.assertGreaterEqual(location, min(samples))
            self.assertLessEqual(location, max(samples))
            self.assertGreaterEqual(scale, 0)

    def test_zero_iterations_returns_initial_estimates(self):
        """Test zero iterations returns initial estimates."""
        location, scale = huber_estimate([1, 2, 3, 4, 100], max_iterations=0)
        self.assertEqual(location, 3.0)
        self.assertAlmostEqual(scale, 1.4826)

    def test_iteration_bound_terminates(self):
        """Test iteration bound terminates."""
        samples = [1, 2, 3, 4, 100, 250, 7, 8]
        location, scale = huber_estimate(samples, max_iterations=1, tolerance=0.0)
        self.assertGreaterEqual(location, 1)
        self.assertLessEqual(location, 250)
        self.assertGreater(scale, 0)

    def test_returns_python_floats(self):
        """Test returns python floats."""
        location, scale = huber_estimate([1, 2, 3])
        self.assertIsInstance(location, float)
        self.assertIsInstance(scale, float)

if __name__ == '__main__':
    unittest.main()
