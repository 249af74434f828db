from datetime import date

from engine.constants import get_tax_year
from engine.models import (
    AccountType,
    AccumulationResult,
    TaxTreatment,
    YearlyAccountBalance,
    has_employer_match,
)


def calculate_employer_match(account, contribution):
    """Lesser of the matched share of ``contribution`` and the dollar limit."""
    if (not has_employer_match(account.type)
            or not account.employer_match_percent
            or not account.employer_match_limit):
        return 0
    return min(contribution * account.employer_match_percent, account.employer_match_limit)


def calculate_accumulation(accounts, profile, assumptions, start_year=None, tax_year=None):
    """
    Project account growth from the current age to retirement.

    Each year the balance earns its return, then receives the contribution
    and any employer match.  FHSA contributions stop at the lifetime limit.

    Args:
        accounts: List of Account
        profile: Profile (ages only)
        assumptions: Assumptions (inflation used for the real totals)
        start_year: Calendar year of the current age (defaults to this year)
        tax_year: Tax year supplying the FHSA lifetime limit
    """
    years_to_retirement = profile.retirement_age - profile.current_age
    current_year = start_year if start_year is not None else date.today().year
    fhsa_lifetime_limit = get_tax_year(tax_year).fhsa_lifetime_limit

    balances = {acc.id: acc.balance for acc in accounts}
    contributions = {acc.id: acc.annual_contribution for acc in accounts}
    cumulative = {acc.id: 0 for acc in accounts}

    yearly_balances = [YearlyAccountBalance(
        age=profile.current_age,
        year=current_year,
        balances=dict(balances),
        total_balance=sum(balances.values()),
        contributions=dict(contributions),
    )]

    for i in range(1, years_to_retirement + 1):
        for acc in accounts:
            contribution = contributions[acc.id]

            if acc.type == AccountType.FHSA:
                room = fhsa_lifetime_limit - cumulative[acc.id]
                contribution = max(0, min(contribution, room))
                cumulative[acc.id] += contribution

            grown = balances[acc.id] * (1 + acc.return_rate)
            match = calculate_employer_match(acc, contribution)
            balances[acc.id] = grown + contribution + match

            if acc.type != AccountType.FHSA or cumulative[acc.id] < fhsa_lifetime_limit:
                contributions[acc.id] = contribution * (1 + acc.contribution_growth_rate)
            else:
                contributions[acc.id] = 0

        yearly_balances.append(YearlyAccountBalance(
            age=profile.current_age + i,
            year=current_year + i,
            balances=dict(balances),
            total_balance=sum(balances.values()),
            contributions=dict(contributions),
        ))

    breakdown = {t.value: 0.0 for t in TaxTreatment}
    for acc in accounts:
        breakdown[acc.tax_treatment.value] += balances[acc.id]

    total = sum(balances.values())

    # Real = nominal / (1 + inflation)^years
    discount = (1 + assumptions.inflation_rate) ** max(0, years_to_retirement)
    if discount <= 0:
        discount = 1

    return AccumulationResult(
        yearly_balances=yearly_balances,
        final_balances=dict(balances),
        total_at_retirement=total,
        total_at_retirement_real=total / discount,
        breakdown_by_tax_treatment=breakdown,
        breakdown_by_tax_treatment_real={k: v / discount for k, v in breakdown.items()},
    )


def get_balance_at_age(result, account_id, age):
    for snapshot in result.yearly_balances:
        if snapshot.age == age:
            return snapshot.balances.get(account_id, 0)
    return 0


def calculate_total_contributions(accounts, profile):
    """Lifetime contributions (plus employer match) per account before retirement."""
    years_to_retirement = profile.retirement_age - profile.current_age
    totals = {}
    for acc in accounts:
        total = 0
        yearly = acc.annual_contribution
        for _ in range(max(0, years_to_retirement)):
            total += yearly + calculate_employer_match(acc, yearly)
            yearly *= (1 + acc.contribution_growth_rate)
        totals[acc.id] = total
    return totals
