import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from engine.models import TaxTreatment
from engine.withdrawals import AccountState, TaxOptimizedStrategy

CEILING = 55867


def _rrsp(balance, id='rrsp', owner='primary'):
    return AccountState(id=id, treatment=TaxTreatment.TAX_DEFERRED, owner=owner, balance=balance)


def _tfsa(balance, id='tfsa'):
    return AccountState(id=id, treatment=TaxTreatment.TAX_FREE, owner='primary', balance=balance)


def _non_reg(balance, basis, id='nonreg'):
    return AccountState(id=id, treatment=TaxTreatment.TAXABLE, owner='primary',
                        balance=balance, cost_basis=basis)


class TestTaxOptimizedStrategy(unittest.TestCase):
    def setUp(self):
        self.strategy = TaxOptimizedStrategy()

    def test_bracket_fill_before_tax_free(self):
        states = [_rrsp(500000), _tfsa(100000)]
        wd = self.strategy.execute(states, 120000, 0, 0, CEILING)

        self.assertAlmostEqual(wd.by_account['rrsp'], 55867)
        self.assertAlmostEqual(wd.by_account['tfsa'], 64133)
        self.assertAlmostEqual(wd.total, 120000)
        self.assertAlmostEqual(states[0].balance, 500000 - 55867)

    def test_small_need_only_touches_rrsp(self):
        states = [_rrsp(500000), _tfsa(100000)]
        wd = self.strategy.execute(states, 24000, 0, 0, CEILING)

        self.assertAlmostEqual(wd.by_account['rrsp'], 24000)
        self.assertEqual(wd.by_account['tfsa'], 0)

    def test_full_order_with_small_accounts(self):
        states = [_rrsp(10000), _tfsa(5000), _non_reg(50000, 50000)]
        wd = self.strategy.execute(states, 40000, 0, 0, CEILING)

        self.assertAlmostEqual(wd.rrsp_withdrawal, 10000)
        self.assertAlmostEqual(wd.tax_free_withdrawal, 5000)
        self.assertAlmostEqual(wd.taxable_withdrawal, 25000)
        self.assertAlmostEqual(wd.taxable_gains, 0)
        self.assertAlmostEqual(states[2].balance, 25000)
        self.assertAlmostEqual(states[2].cost_basis, 25000)

    def test_rrsp_overflow_after_other_accounts(self):
        states = [_rrsp(200000), _tfsa(0)]
        wd = self.strategy.execute(states, 80000, 0, 0, CEILING)

        self.assertAlmostEqual(wd.rrsp_withdrawal, 80000)
        self.assertAlmostEqual(wd.by_account['rrsp'], 80000)

    def test_fixed_income_reduces_need_and_room(self):
        states = [_rrsp(200000), _tfsa(100000)]
        wd = self.strategy.execute(states, 80000, 0, 40000, CEILING)

        # need 40k, room 15,867 in the first bracket
        self.assertAlmostEqual(wd.by_account['rrsp'], 15867)
        self.assertAlmostEqual(wd.by_account['tfsa'], 24133)

    def test_fixed_income_covers_target(self):
        states = [_rrsp(200000), _tfsa(100000)]
        wd = self.strategy.execute(states, 30000, 0, 40000, CEILING)
        self.assertEqual(wd.total, 0)

    def test_mandatory_minimum_taken_without_need(self):
        states = [_rrsp(100000), _tfsa(100000)]
        wd = self.strategy.execute(states, 2000, 5400, 0, CEILING)

        self.assertAlmostEqual(wd.by_account['rrsp'], 5400)
        self.assertEqual(wd.by_account['tfsa'], 0)
        self.assertAlmostEqual(wd.total, 5400)

    def test_minimum_counts_toward_need(self):
        states = [_rrsp(100000), _tfsa(100000)]
        wd = self.strategy.execute(states, 10000, 5400, 0, CEILING)
        self.assertAlmostEqual(wd.by_account['rrsp'], 10000)
        self.assertEqual(wd.by_account['tfsa'], 0)

    def test_minimum_spans_rrsp_accounts_in_order(self):
        states = [_rrsp(3000, id='a'), _rrsp(100000, id='b')]
        wd = self.strategy.execute(states, 0, 5000, 0, CEILING)
        self.assertAlmostEqual(wd.by_account['a'], 3000)
        self.assertAlmostEqual(wd.by_account['b'], 2000)

    def test_shortfall_when_everything_is_drained(self):
        states = [_rrsp(1000), _tfsa(2000), _non_reg(3000, 1500)]
        wd = self.strategy.execute(states, 50000, 0, 0, CEILING)

        self.assertAlmostEqual(wd.total, 6000)
        for s in states:
            self.assertEqual(s.balance, 0)
        self.assertEqual(states[2].cost_basis, 0)

    def test_zero_basis_is_all_gain(self):
        states = [_non_reg(100000, 0)]
        wd = self.strategy.execute(states, 10000, 0, 0, CEILING)
        self.assertAlmostEqual(wd.taxable_gains, 10000)

    def test_gain_ratio(self):
        self.assertAlmostEqual(TaxOptimizedStrategy.gain_ratio(_non_reg(100000, 25000)), 0.75)
        self.assertEqual(TaxOptimizedStrategy.gain_ratio(_non_reg(100000, 150000)), 0)
        self.assertEqual(TaxOptimizedStrategy.gain_ratio(_non_reg(0, 0)), 0.5)

    def test_per_account_amounts_sum_to_total(self):
        states = [_rrsp(30000), _tfsa(10000), _non_reg(40000, 10000), _rrsp(60000, id='rrsp2')]
        wd = self.strategy.execute(states, 95000, 1000, 5000, CEILING)

        self.assertAlmostEqual(sum(wd.by_account.values()), wd.total)
        self.assertAlmostEqual(wd.rrsp_withdrawal + wd.tax_free_withdrawal + wd.taxable_withdrawal,
                               wd.total)
        for s in states:
            self.assertGreaterEqual(s.balance, 0)


if __name__ == '__main__':
    unittest.main()
