import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from engine.rrif import compute_mandatory_minimum, get_rrif_factor


class TestRrifFactor(unittest.TestCase):
    def test_no_minimum_before_payments_start(self):
        for age in (55, 65, 70, 71):
            self.assertEqual(get_rrif_factor(age), 0)

    def test_first_payment_year(self):
        self.assertEqual(get_rrif_factor(72), 0.054)

    def test_clamped_after_table(self):
        self.assertEqual(get_rrif_factor(95), 0.20)
        self.assertEqual(get_rrif_factor(100), 0.20)
        self.assertEqual(get_rrif_factor(120), 0.20)

    def test_non_decreasing_with_age(self):
        factors = [get_rrif_factor(age) for age in range(60, 111)]
        self.assertEqual(factors, sorted(factors))


class TestMandatoryMinimum(unittest.TestCase):
    def test_minimum_at_72(self):
        self.assertAlmostEqual(compute_mandatory_minimum(72, 100000), 5400)

    def test_before_72(self):
        self.assertEqual(compute_mandatory_minimum(71, 100000), 0)

    def test_empty_pool(self):
        self.assertEqual(compute_mandatory_minimum(80, 0), 0)
        self.assertEqual(compute_mandatory_minimum(80, -10), 0)


if __name__ == '__main__':
    unittest.main()
