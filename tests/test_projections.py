import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from engine.models import Account, Assumptions, Profile
from engine.projections import (
    calculate_accumulation,
    calculate_employer_match,
    calculate_total_contributions,
    get_balance_at_age,
)


def _profile(current_age, retirement_age):
    return Profile(current_age=current_age, retirement_age=retirement_age, life_expectancy=95)


NO_INFLATION = Assumptions(inflation_rate=0.0, safe_withdrawal_rate=0.04, retirement_return_rate=0.0)


class TestAccumulation(unittest.TestCase):
    def test_return_then_contribution(self):
        acc = Account(id='rrsp', type='rrsp', balance=100000, annual_contribution=10000, return_rate=0.05)
        result = calculate_accumulation([acc], _profile(64, 65), NO_INFLATION, start_year=2030)

        self.assertAlmostEqual(result.final_balances['rrsp'], 115000)
        self.assertAlmostEqual(result.total_at_retirement, 115000)
        self.assertAlmostEqual(result.breakdown_by_tax_treatment['pretax'], 115000)
        self.assertEqual(result.breakdown_by_tax_treatment['tax_free'], 0)

    def test_snapshots_start_at_current_age(self):
        acc = Account(id='tfsa', type='tfsa', balance=5000)
        result = calculate_accumulation([acc], _profile(60, 63), NO_INFLATION, start_year=2030)

        self.assertEqual([y.age for y in result.yearly_balances], [60, 61, 62, 63])
        self.assertEqual([y.year for y in result.yearly_balances], [2030, 2031, 2032, 2033])
        self.assertEqual(result.yearly_balances[0].balances['tfsa'], 5000)

    def test_already_retired_has_single_snapshot(self):
        acc = Account(id='rrsp', type='rrsp', balance=250000, annual_contribution=10000)
        result = calculate_accumulation([acc], _profile(65, 65), NO_INFLATION)

        self.assertEqual(len(result.yearly_balances), 1)
        self.assertEqual(result.total_at_retirement, 250000)
        self.assertEqual(result.total_at_retirement_real, 250000)

    def test_contributions_grow(self):
        acc = Account(id='tfsa', type='tfsa', annual_contribution=1000, contribution_growth_rate=0.10)
        result = calculate_accumulation([acc], _profile(60, 62), NO_INFLATION)
        self.assertAlmostEqual(result.final_balances['tfsa'], 2100)

    def test_fhsa_lifetime_cap(self):
        acc = Account(id='fhsa', type='fhsa', annual_contribution=8000)
        result = calculate_accumulation([acc], _profile(30, 37), NO_INFLATION)

        self.assertAlmostEqual(result.final_balances['fhsa'], 40000)
        self.assertEqual(result.yearly_balances[-1].contributions['fhsa'], 0)

    def test_fhsa_partial_final_contribution(self):
        acc = Account(id='fhsa', type='fhsa', annual_contribution=15000)
        result = calculate_accumulation([acc], _profile(30, 34), NO_INFLATION)
        # 15k + 15k + 10k, then nothing
        self.assertAlmostEqual(result.final_balances['fhsa'], 40000)

    def test_real_values_discounted(self):
        acc = Account(id='rrsp', type='rrsp', balance=100000)
        assumptions = Assumptions(inflation_rate=0.02, safe_withdrawal_rate=0.04, retirement_return_rate=0.0)
        result = calculate_accumulation([acc], _profile(63, 65), assumptions)

        self.assertAlmostEqual(result.total_at_retirement, 100000)
        self.assertAlmostEqual(result.total_at_retirement_real, 100000 / 1.0404)
        self.assertAlmostEqual(result.breakdown_by_tax_treatment_real['pretax'], 100000 / 1.0404)

    def test_inputs_not_mutated(self):
        acc = Account(id='rrsp', type='rrsp', balance=100000, annual_contribution=5000, return_rate=0.05)
        calculate_accumulation([acc], _profile(40, 45), NO_INFLATION)
        self.assertEqual(acc.balance, 100000)
        self.assertEqual(acc.annual_contribution, 5000)

    def test_get_balance_at_age(self):
        acc = Account(id='tfsa', type='tfsa', annual_contribution=1000)
        result = calculate_accumulation([acc], _profile(60, 63), NO_INFLATION)
        self.assertAlmostEqual(get_balance_at_age(result, 'tfsa', 62), 2000)
        self.assertEqual(get_balance_at_age(result, 'tfsa', 90), 0)
        self.assertEqual(get_balance_at_age(result, 'missing', 62), 0)


class TestEmployerMatch(unittest.TestCase):
    def test_match_limited_by_dollar_cap(self):
        acc = Account(id='grsp', type='rrsp', annual_contribution=10000,
                      employer_match_percent=0.5, employer_match_limit=3000)
        self.assertEqual(calculate_employer_match(acc, 10000), 3000)
        self.assertEqual(calculate_employer_match(acc, 4000), 2000)

        result = calculate_accumulation([acc], _profile(64, 65), NO_INFLATION)
        self.assertAlmostEqual(result.final_balances['grsp'], 13000)

    def test_only_rrsp_is_matched(self):
        acc = Account(id='tfsa', type='tfsa', annual_contribution=10000,
                      employer_match_percent=0.5, employer_match_limit=3000)
        self.assertEqual(calculate_employer_match(acc, 10000), 0)

    def test_total_contributions_include_match(self):
        acc = Account(id='grsp', type='rrsp', annual_contribution=1000, contribution_growth_rate=0.10,
                      employer_match_percent=1.0, employer_match_limit=5000)
        totals = calculate_total_contributions([acc], _profile(60, 62))
        self.assertAlmostEqual(totals['grsp'], 4200)


if __name__ == '__main__':
    unittest.main()
