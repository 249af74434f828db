import copy
import logging
from dataclasses import asdict

import pandas as pd

from engine.core import run_plan
from engine.limits import calculate_annual_limits
from engine.models import Account, Assumptions, Profile
from schemas.simulation import AssumptionsParams, LimitsParams, ScenarioParams, SimulationParams

logger = logging.getLogger(__name__)


def map_to_engine_accounts(params: SimulationParams):
    """Convert Pydantic accounts to engine Accounts"""
    return [Account(**a.model_dump()) for a in params.accounts]


def map_to_engine_profile(profile_params) -> Profile:
    """Convert the Pydantic profile (and spouse) to an engine Profile"""
    data = profile_params.model_dump(exclude={'spouse'})
    profile = Profile(**data)

    spouse = profile_params.spouse
    if spouse is not None:
        spouse_data = spouse.model_dump()
        # The spouse's horizon is driven by the primary's loop
        if spouse_data['retirement_age'] is None:
            spouse_data['retirement_age'] = profile.retirement_age
        if spouse_data['life_expectancy'] is None:
            spouse_data['life_expectancy'] = profile.life_expectancy
        if spouse_data['name'] is None:
            spouse_data['name'] = 'Spouse'
        profile.spouse = Profile(**spouse_data)
    return profile


def map_to_engine_assumptions(params: AssumptionsParams) -> Assumptions:
    return Assumptions(**params.model_dump())


def records_to_frame(records: list) -> pd.DataFrame:
    """One row per retirement year, with per-account withdrawal and balance columns."""
    rows = []
    for r in records:
        row = {
            'Age': r.age,
            'Year': r.year,
            'Target_Spending': r.target_spending,
            'Fixed_Income': r.fixed_income,
            'RRIF_Minimum': r.mandatory_minimum,
        }
        for acc_id, amount in r.withdrawals.items():
            row[f'WD_{acc_id}'] = amount
        row.update({
            'Total_Withdrawal': r.total_withdrawal,
            'Realized_Gains': r.realized_gains,
            'Gross_Income': r.gross_income,
            'National_Tax': r.national_tax,
            'Regional_Tax': r.regional_tax,
            'Total_Tax': r.total_tax,
            'After_Tax_Income': r.after_tax_income,
            'Effective_Tax_Rate': r.effective_tax_rate,
        })
        for acc_id, balance in r.remaining_balances.items():
            row[f'Bal_{acc_id}'] = balance
        row['Total_Balance'] = r.total_remaining_balance
        rows.append(row)
    return pd.DataFrame(rows)


def format_results(df: pd.DataFrame) -> dict:
    """Format engine results for API response"""
    if df.empty:
        return {'results': [], 'columns': []}

    df = df.round(2)
    header = list(df.columns)

    results_json = []
    for _, row in df.iterrows():
        row_dict = {}
        for col in header:
            val = row[col]
            if pd.isna(val):
                row_dict[col] = None
            elif hasattr(val, 'item'):
                row_dict[col] = val.item()
            else:
                row_dict[col] = val
        results_json.append(row_dict)

    return {
        'results': results_json,
        'columns': header
    }


def summarize_accumulation(accumulation) -> dict:
    return {
        'final_balances': dict(accumulation.final_balances),
        'total_at_retirement': accumulation.total_at_retirement,
        'total_at_retirement_real': accumulation.total_at_retirement_real,
        'breakdown_by_tax_treatment': dict(accumulation.breakdown_by_tax_treatment),
        'breakdown_by_tax_treatment_real': dict(accumulation.breakdown_by_tax_treatment_real),
        'yearly_balances': [asdict(y) for y in accumulation.yearly_balances],
    }


def summarize_retirement(retirement) -> dict:
    return {
        'portfolio_depletion_age': retirement.portfolio_depletion_age,
        'lifetime_taxes_paid': retirement.lifetime_taxes_paid,
        'sustainable_monthly_withdrawal': retirement.sustainable_monthly_withdrawal,
        'sustainable_annual_withdrawal': retirement.sustainable_annual_withdrawal,
        'sustainable_monthly_withdrawal_nominal': retirement.sustainable_monthly_withdrawal_nominal,
        'sustainable_annual_withdrawal_nominal': retirement.sustainable_annual_withdrawal_nominal,
        'account_depletion_ages': dict(retirement.account_depletion_ages),
    }


def _run(accounts, profile, assumptions, tax_year, start_year):
    accumulation, retirement = run_plan(accounts, profile, assumptions,
                                        tax_year=tax_year, start_year=start_year)
    return {
        'accumulation': summarize_accumulation(accumulation),
        'retirement': summarize_retirement(retirement),
        'ledger': format_results(records_to_frame(retirement.yearly_withdrawals)),
    }


def run_simulation_service(params: SimulationParams):
    """
    Service to run accumulation and withdrawals and return formatted results.
    """
    logger.info("Running plan with %d accounts (tax year %s)", len(params.accounts), params.tax_year)
    accounts = map_to_engine_accounts(params)
    profile = map_to_engine_profile(params.profile)
    assumptions = map_to_engine_assumptions(params.assumptions)

    result = _run(accounts, profile, assumptions, params.tax_year, params.start_year)
    return {
        'success': True,
        'config': params.model_dump(),
        **result,
    }


def run_comparison_service(params: ScenarioParams):
    """
    Run the baseline plus every named assumption set.

    Each scenario gets its own copy of the accounts and profile.
    """
    logger.info("Comparing %d scenarios against baseline", len(params.scenarios))
    accounts = map_to_engine_accounts(params)
    profile = map_to_engine_profile(params.profile)

    assumption_sets = {'baseline': params.assumptions}
    assumption_sets.update(params.scenarios)

    scenarios = {}
    summary_rows = []
    for name, assumption_params in assumption_sets.items():
        result = _run(copy.deepcopy(accounts), copy.deepcopy(profile),
                      map_to_engine_assumptions(assumption_params),
                      params.tax_year, params.start_year)
        scenarios[name] = result

        ledger = result['ledger']['results']
        summary_rows.append({
            'Scenario': name,
            'Depletion_Age': result['retirement']['portfolio_depletion_age'],
            'Lifetime_Taxes': result['retirement']['lifetime_taxes_paid'],
            'Sustainable_Annual': result['retirement']['sustainable_annual_withdrawal'],
            'Final_Balance': ledger[-1]['Total_Balance'] if ledger else 0,
        })

    return {
        'success': True,
        'config': params.model_dump(),
        'scenarios': scenarios,
        'summary': format_results(pd.DataFrame(summary_rows)),
    }


def run_limits_service(params: LimitsParams):
    """Service to suggest contributions for the household"""
    profile = map_to_engine_profile(params.profile)
    limits = calculate_annual_limits(profile, tax_year=params.tax_year)
    return {
        'success': True,
        'limits': asdict(limits),
    }
