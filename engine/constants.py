from dataclasses import dataclass
from typing import Dict, Optional, Tuple

# (lower, upper, rate); the last bracket is unbounded.
Bracket = Tuple[float, float, float]

INFINITY = float('inf')

# Capital gains inclusion rate (50% below the $250k threshold, which covers
# almost every annual retirement withdrawal).
CAPITAL_GAINS_INCLUSION_RATE = 0.50


@dataclass(frozen=True)
class TaxYear:
    """
    Tax tables and limits for a single tax year.

    National brackets are federal, regional brackets model Ontario.  Setting
    ``regional_brackets`` to None switches the regional computation to the
    caller's flat rate.
    """
    year: int
    national_brackets: Tuple[Bracket, ...]
    basic_personal_amount: float
    regional_brackets: Optional[Tuple[Bracket, ...]]
    regional_basic_personal_amount: float
    surtax_1_threshold: float
    surtax_1_rate: float
    surtax_2_threshold: float
    surtax_2_rate: float
    # (income floor, premium), ascending; income must exceed the floor
    health_premium_tiers: Tuple[Tuple[float, float], ...]
    capital_gains_inclusion_rate: float = CAPITAL_GAINS_INCLUSION_RATE

    # Payroll deductions
    cpp_rate: float = 0.0595
    cpp_max_pensionable_earnings: float = 68500
    cpp_exemption: float = 3500
    cpp_max_contribution: float = 3867.50
    ei_rate: float = 0.0166
    ei_max_insurable_earnings: float = 63200
    ei_max_contribution: float = 1049.12

    # Contribution limits
    rrsp_contribution_rate: float = 0.18
    rrsp_max_limit: float = 31560
    tfsa_annual_limit: float = 7000
    fhsa_annual_limit: float = 8000
    fhsa_lifetime_limit: float = 40000

    @property
    def first_bracket_ceiling(self):
        return self.national_brackets[0][1]


_HEALTH_PREMIUM_TIERS = (
    (20000, 300),
    (36000, 450),
    (48000, 600),
    (72000, 750),
    (200000, 900),
)

TAX_YEAR_2024 = TaxYear(
    year=2024,
    national_brackets=(
        (0, 55867, 0.15),
        (55867, 111733, 0.205),
        (111733, 173205, 0.26),
        (173205, 246752, 0.29),
        (246752, INFINITY, 0.33),
    ),
    basic_personal_amount=15705,
    regional_brackets=(
        (0, 51446, 0.0505),
        (51446, 102892, 0.0915),
        (102892, 150000, 0.1116),
        (150000, 220000, 0.1216),
        (220000, INFINITY, 0.1316),
    ),
    regional_basic_personal_amount=11865,
    surtax_1_threshold=5315,
    surtax_1_rate=0.20,
    surtax_2_threshold=6802,
    surtax_2_rate=0.36,
    health_premium_tiers=_HEALTH_PREMIUM_TIERS,
)

# 2025 keeps the 15% lowest rate (ignores the mid-year cut to 14%).
TAX_YEAR_2025 = TaxYear(
    year=2025,
    national_brackets=(
        (0, 57375, 0.15),
        (57375, 114750, 0.205),
        (114750, 177882, 0.26),
        (177882, 253414, 0.29),
        (253414, INFINITY, 0.33),
    ),
    basic_personal_amount=16129,
    regional_brackets=(
        (0, 52886, 0.0505),
        (52886, 105775, 0.0915),
        (105775, 150000, 0.1116),
        (150000, 220000, 0.1216),
        (220000, INFINITY, 0.1316),
    ),
    regional_basic_personal_amount=12747,
    surtax_1_threshold=5710,
    surtax_1_rate=0.20,
    surtax_2_threshold=7307,
    surtax_2_rate=0.36,
    health_premium_tiers=_HEALTH_PREMIUM_TIERS,
    cpp_max_pensionable_earnings=71300,
    cpp_max_contribution=4034.10,
    ei_rate=0.0164,
    ei_max_insurable_earnings=65700,
    ei_max_contribution=1077.48,
    rrsp_max_limit=32490,
)

TAX_YEARS: Dict[int, TaxYear] = {
    2024: TAX_YEAR_2024,
    2025: TAX_YEAR_2025,
}

DEFAULT_TAX_YEAR = 2024


def get_tax_year(year=None) -> TaxYear:
    """
    Look up the tables for ``year`` (defaults to DEFAULT_TAX_YEAR).
    A TaxYear instance is passed through, so custom tables can be used.
    """
    if isinstance(year, TaxYear):
        return year
    if year is None:
        year = DEFAULT_TAX_YEAR
    try:
        return TAX_YEARS[int(year)]
    except KeyError:
        supported = ', '.join(str(y) for y in sorted(TAX_YEARS))
        raise ValueError(f"Unsupported tax year {year}; supported years: {supported}")


# RRIF must be opened by the end of the year you turn 71; payments start the
# year you turn 72.
RRIF_START_AGE = 72

# RRIF minimum withdrawal factors (age at start of year)
RRIF_TABLE = {
    70: 0.0500, 71: 0.0528, 72: 0.0540, 73: 0.0553, 74: 0.0567,
    75: 0.0582, 76: 0.0598, 77: 0.0617, 78: 0.0636, 79: 0.0658,
    80: 0.0682, 81: 0.0708, 82: 0.0738, 83: 0.0771, 84: 0.0808,
    85: 0.0851, 86: 0.0899, 87: 0.0955, 88: 0.1021, 89: 0.1099,
    90: 0.1192, 91: 0.1306, 92: 0.1449, 93: 0.1634, 94: 0.1879,
    95: 0.2000,
}

# Default values for a new plan
DEFAULT_PROFILE = {
    'name': 'Primary',
    'current_age': 35,
    'retirement_age': 65,
    'life_expectancy': 120,
    'regional_tax_rate': 0.10,
    'benefit_amount': 0,
    'benefit_start_age': 65,
}

DEFAULT_ASSUMPTIONS = {
    'inflation_rate': 0.025,
    'safe_withdrawal_rate': 0.04,
    'retirement_return_rate': 0.05,
}
