import logging
from datetime import date

from engine.models import (
    DEFAULT_BASIS_RATIO,
    PRIMARY,
    SPOUSE,
    AccumulationResult,
    RetirementResult,
    TaxTreatment,
    YearlyWithdrawal,
)
from engine.outcomes import summarize_retirement
from engine.projections import calculate_accumulation
from engine.rrif import compute_mandatory_minimum
from engine.taxes import TaxCalculator
from engine.withdrawals import AccountState, TaxOptimizedStrategy

logger = logging.getLogger(__name__)


def initialize_account_states(accounts, final_balances):
    """Working copies of the accounts, starting from the accumulated balances."""
    states = []
    for acc in accounts:
        balance = final_balances.get(acc.id, 0)
        cost_basis = 0
        if acc.tax_treatment == TaxTreatment.TAXABLE:
            ratio = acc.basis_ratio if acc.basis_ratio is not None else DEFAULT_BASIS_RATIO
            cost_basis = balance * ratio
        states.append(AccountState(
            id=acc.id,
            treatment=acc.tax_treatment,
            owner=acc.owner,
            balance=balance,
            cost_basis=cost_basis,
        ))
    return states


def benefit_income(person, person_age, elapsed_years, inflation_rate):
    """Inflation-indexed CPP/OAS income once ``person_age`` reaches the start age."""
    if not person.benefit_amount or person.benefit_start_age is None:
        return 0
    if person_age < person.benefit_start_age:
        return 0
    return person.benefit_amount * (1 + inflation_rate) ** elapsed_years


def _sum_for(states, owner, treatment, amounts=None):
    total = 0
    for s in states:
        if s.owner == owner and s.treatment == treatment:
            total += amounts.get(s.id, 0) if amounts is not None else s.balance
    return total


def simulate_withdrawals(accounts, profile, assumptions, accumulation, tax_year=None,
                         start_year=None, strategy=None):
    """
    Run the retirement (decumulation) phase year by year.

    Args:
        accounts: List of Account; never mutated
        profile: Profile, optionally with a spouse
        assumptions: Assumptions
        accumulation: AccumulationResult supplying final balances and totals
        tax_year: Tax year whose tables apply for the whole horizon
        start_year: Calendar year of the profile's current age
        strategy: WithdrawalStrategy (defaults to TaxOptimizedStrategy)
    """
    tax_calc = TaxCalculator(tax_year)
    if strategy is None:
        strategy = TaxOptimizedStrategy()

    current_year = start_year if start_year is not None else date.today().year
    retirement_start_year = current_year + (profile.retirement_age - profile.current_age)
    spouse = profile.spouse
    spouse_rate = profile.regional_tax_rate
    if spouse is not None and spouse.regional_tax_rate is not None:
        spouse_rate = spouse.regional_tax_rate

    states = initialize_account_states(accounts, accumulation.final_balances)

    # Pension splitting lets a couple fill two first brackets
    bracket_ceiling = tax_calc.tables.first_bracket_ceiling * (2 if spouse is not None else 1)

    target_spending = accumulation.total_at_retirement * assumptions.safe_withdrawal_rate

    records = []
    portfolio_depletion_age = None
    account_depletion_ages = {acc.id: None for acc in accounts}

    # --- SIMULATION LOOP ---
    for age in range(profile.retirement_age, profile.life_expectancy + 1):
        elapsed = age - profile.current_age
        year = retirement_start_year + (age - profile.retirement_age)

        total_remaining = sum(s.balance for s in states)
        if total_remaining <= 0 and portfolio_depletion_age is None:
            portfolio_depletion_age = age
            logger.debug("Portfolio depleted at age %s", age)

        # --- 1. Fixed income ---
        spouse_age = spouse.current_age + elapsed if spouse is not None else age
        primary_fixed = benefit_income(profile, age, elapsed, assumptions.inflation_rate)
        spouse_fixed = 0
        if spouse is not None:
            spouse_fixed = benefit_income(spouse, spouse_age, elapsed, assumptions.inflation_rate)
        total_fixed = primary_fixed + spouse_fixed

        # --- 2. RRIF minimums, each on the owner's own age ---
        primary_minimum = compute_mandatory_minimum(
            age, _sum_for(states, PRIMARY, TaxTreatment.TAX_DEFERRED))
        spouse_minimum = compute_mandatory_minimum(
            spouse_age, _sum_for(states, SPOUSE, TaxTreatment.TAX_DEFERRED))
        total_minimum = primary_minimum + spouse_minimum

        # --- 3. Withdrawals ---
        wd = strategy.execute(states, target_spending, total_minimum, total_fixed, bracket_ceiling)

        # --- 4. Depletion bookkeeping ---
        for s in states:
            if s.balance <= 0 and account_depletion_ages.get(s.id) is None:
                account_depletion_ages[s.id] = age
                logger.debug("Account %s depleted at age %s", s.id, age)

        # --- 5. Investment returns on what is left ---
        for s in states:
            s.balance *= (1 + assumptions.retirement_return_rate)

        # --- 6. Taxes per person ---
        primary_taxable_wd = _sum_for(states, PRIMARY, TaxTreatment.TAXABLE, wd.by_account)
        if wd.taxable_withdrawal > 0:
            primary_gains = wd.taxable_gains * (primary_taxable_wd / wd.taxable_withdrawal)
        else:
            primary_gains = 0
        spouse_gains = wd.taxable_gains - primary_gains

        primary_ordinary = _sum_for(states, PRIMARY, TaxTreatment.TAX_DEFERRED, wd.by_account) + primary_fixed
        spouse_ordinary = _sum_for(states, SPOUSE, TaxTreatment.TAX_DEFERRED, wd.by_account) + spouse_fixed

        national_tax = (tax_calc.calculate_national_tax(primary_ordinary, primary_gains)
                        + tax_calc.calculate_national_tax(spouse_ordinary, spouse_gains))
        regional_tax = (tax_calc.calculate_regional_tax(primary_ordinary, primary_gains,
                                                        profile.regional_tax_rate)
                        + tax_calc.calculate_regional_tax(spouse_ordinary, spouse_gains, spouse_rate))
        total_tax = national_tax + regional_tax

        gross_income = wd.total + total_fixed

        # --- 7. Record ---
        records.append(YearlyWithdrawal(
            age=age,
            year=year,
            withdrawals=dict(wd.by_account),
            remaining_balances={s.id: s.balance for s in states},
            total_withdrawal=wd.total,
            fixed_income=total_fixed,
            gross_income=gross_income,
            national_tax=national_tax,
            regional_tax=regional_tax,
            total_tax=total_tax,
            after_tax_income=gross_income - total_tax,
            target_spending=target_spending,
            mandatory_minimum=total_minimum,
            total_remaining_balance=sum(s.balance for s in states),
            realized_gains=wd.taxable_gains,
        ))

        target_spending *= (1 + assumptions.inflation_rate)

    result = summarize_retirement(records, portfolio_depletion_age, account_depletion_ages,
                                  accumulation, assumptions)
    logger.debug("Simulated %d retirement years, lifetime tax %.2f, depletion age %s",
                 len(records), result.lifetime_taxes_paid, portfolio_depletion_age)
    return result


def run_plan(accounts, profile, assumptions, tax_year=None, start_year=None):
    """
    Accumulation followed by withdrawals.

    Returns:
        (AccumulationResult, RetirementResult); both empty when there is
        nothing to project.
    """
    if not accounts:
        return AccumulationResult(), RetirementResult()

    accumulation = calculate_accumulation(accounts, profile, assumptions,
                                          start_year=start_year, tax_year=tax_year)
    if accumulation.total_at_retirement == 0:
        return accumulation, RetirementResult()

    retirement = simulate_withdrawals(accounts, profile, assumptions, accumulation,
                                      tax_year=tax_year, start_year=start_year)
    return accumulation, retirement
