from dataclasses import dataclass
from typing import Optional

from engine.taxes import TaxCalculator


@dataclass
class ContributionLimits:
    rrsp: float
    tfsa: float
    fhsa: float
    non_registered: float
    total: float
    gross_income: float
    total_tax: float
    national_tax: float
    regional_tax: float
    cpp_ei: float
    net_income: float
    annual_spending: float
    available_savings: float
    spouse: Optional['ContributionLimits'] = None


def calculate_payroll_deductions(income, tables):
    """CPP and EI premiums, each capped at its annual maximum."""
    pensionable = max(0, min(income, tables.cpp_max_pensionable_earnings) - tables.cpp_exemption)
    cpp = min(pensionable * tables.cpp_rate, tables.cpp_max_contribution)

    insurable = min(max(0, income), tables.ei_max_insurable_earnings)
    ei = min(insurable * tables.ei_rate, tables.ei_max_contribution)

    return cpp + ei


def calculate_individual_limits(annual_income, annual_spending, age, is_first_time_home_buyer,
                                regional_rate, tax_calc):
    """
    Suggested contributions for one person, limited by what is left after
    taxes, payroll deductions and spending.

    Savings are allocated FHSA -> TFSA -> RRSP -> non-registered.
    """
    tables = tax_calc.tables

    max_rrsp = min(annual_income * tables.rrsp_contribution_rate, tables.rrsp_max_limit)
    max_tfsa = tables.tfsa_annual_limit if age >= 18 else 0
    max_fhsa = tables.fhsa_annual_limit if age >= 18 and is_first_time_home_buyer else 0

    national_tax = tax_calc.calculate_national_tax(annual_income, 0)
    regional_tax = tax_calc.calculate_regional_tax(annual_income, 0, regional_rate)
    total_tax = national_tax + regional_tax
    cpp_ei = calculate_payroll_deductions(annual_income, tables)

    net_income = annual_income - total_tax - cpp_ei
    available = max(0, net_income - annual_spending)

    remaining = available
    fhsa = min(remaining, max_fhsa)
    remaining -= fhsa
    tfsa = min(remaining, max_tfsa)
    remaining -= tfsa
    rrsp = min(remaining, max_rrsp)
    remaining -= rrsp
    non_registered = remaining

    return ContributionLimits(
        rrsp=rrsp,
        tfsa=tfsa,
        fhsa=fhsa,
        non_registered=non_registered,
        total=rrsp + tfsa + fhsa + non_registered,
        gross_income=annual_income,
        total_tax=total_tax,
        national_tax=national_tax,
        regional_tax=regional_tax,
        cpp_ei=cpp_ei,
        net_income=net_income,
        annual_spending=annual_spending,
        available_savings=available,
    )


def calculate_annual_limits(profile, tax_year=None):
    """Contribution suggestions for the profile and, if present, the spouse."""
    tax_calc = TaxCalculator(tax_year)

    limits = calculate_individual_limits(
        profile.annual_income or 0,
        profile.annual_spending or 0,
        profile.current_age,
        profile.is_first_time_home_buyer,
        profile.regional_tax_rate,
        tax_calc,
    )

    spouse = profile.spouse
    if spouse is not None:
        spouse_rate = spouse.regional_tax_rate
        if spouse_rate is None:
            spouse_rate = profile.regional_tax_rate
        limits.spouse = calculate_individual_limits(
            spouse.annual_income or 0,
            spouse.annual_spending or 0,
            spouse.current_age,
            spouse.is_first_time_home_buyer,
            spouse_rate,
            tax_calc,
        )

    return limits
