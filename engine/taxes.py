from engine.constants import get_tax_year


def compute_bracket_tax(taxable_income, brackets):
    """
    Progressive tax on ``taxable_income``.

    Brackets are ascending (lower, upper, rate) tuples; each one taxes at most
    its own width of the remaining income.
    """
    if taxable_income <= 0:
        return 0

    tax = 0
    remaining = taxable_income
    for lower, upper, rate in brackets:
        if remaining <= 0:
            break
        width = upper - lower
        if width <= 0:
            continue
        in_bracket = min(remaining, width)
        tax += in_bracket * rate
        remaining -= in_bracket

    return tax


class TaxCalculator:
    """
    Handles national and regional (Ontario model) tax for one tax year.
    Each household member is taxed as a single filer.
    """

    def __init__(self, tax_year=None):
        self.tables = get_tax_year(tax_year)
        self.brackets_national = self.tables.national_brackets
        self.brackets_regional = self.tables.regional_brackets

    def taxable_income(self, ordinary_income, capital_gains):
        """Ordinary income plus the included portion of capital gains."""
        taxable_gains = max(0, capital_gains) * self.tables.capital_gains_inclusion_rate
        return ordinary_income + taxable_gains

    def calculate_national_tax(self, ordinary_income, capital_gains):
        """Federal tax after the basic personal amount credit."""
        total_taxable = self.taxable_income(ordinary_income, capital_gains)
        if total_taxable <= 0:
            return 0

        tax = compute_bracket_tax(total_taxable, self.brackets_national)
        bpa_credit = self.tables.basic_personal_amount * self.brackets_national[0][2]
        return max(0, tax - bpa_credit)

    def calculate_regional_tax(self, ordinary_income, capital_gains, regional_rate):
        """
        Provincial tax: progressive brackets, personal credit, two surtaxes and
        the health premium.

        ``regional_rate`` is only used when the tax year has no regional
        bracket table, in which case it is applied flat to taxable income.
        """
        total_taxable = self.taxable_income(ordinary_income, capital_gains)
        if total_taxable <= 0:
            return 0

        if self.brackets_regional is None:
            return max(0, total_taxable * (regional_rate or 0))

        basic_tax = compute_bracket_tax(total_taxable, self.brackets_regional)
        credit = self.tables.regional_basic_personal_amount * self.brackets_regional[0][2]
        basic_tax = max(0, basic_tax - credit)

        # Both surtax layers are measured against basic tax and stack
        surtax = 0
        if basic_tax > self.tables.surtax_1_threshold:
            surtax += (basic_tax - self.tables.surtax_1_threshold) * self.tables.surtax_1_rate
        if basic_tax > self.tables.surtax_2_threshold:
            surtax += (basic_tax - self.tables.surtax_2_threshold) * self.tables.surtax_2_rate

        return basic_tax + surtax + self.health_premium(total_taxable)

    def health_premium(self, total_taxable):
        premium = 0
        for floor, amount in self.tables.health_premium_tiers:
            if total_taxable > floor:
                premium = amount
            else:
                break
        return premium

    def marginal_rate(self, total_income):
        """National marginal rate at ``total_income``."""
        for _, upper, rate in self.brackets_national:
            if total_income <= upper:
                return rate
        return self.brackets_national[-1][2]

    def bracket_room(self, total_income, target_rate):
        """How much more income fits before leaving the ``target_rate`` bracket?"""
        for _, upper, rate in self.brackets_national:
            if rate == target_rate:
                return max(0, upper - total_income)
        return 0


def compute_national_tax(ordinary_income, capital_gains, tax_year=None):
    return TaxCalculator(tax_year).calculate_national_tax(ordinary_income, capital_gains)


def compute_regional_tax(ordinary_income, capital_gains, regional_rate, tax_year=None):
    return TaxCalculator(tax_year).calculate_regional_tax(ordinary_income, capital_gains, regional_rate)


def get_marginal_tax_rate(total_income, tax_year=None):
    return TaxCalculator(tax_year).marginal_rate(total_income)


def get_withdrawal_to_fill_bracket(total_income, target_rate, tax_year=None):
    return TaxCalculator(tax_year).bracket_room(total_income, target_rate)


def get_effective_tax_rate(total_tax, gross_income):
    if gross_income <= 0:
        return 0
    return total_tax / gross_income
