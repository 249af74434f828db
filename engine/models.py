from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from engine.taxes import get_effective_tax_rate


class AccountType(str, Enum):
    RRSP = 'rrsp'
    TFSA = 'tfsa'
    FHSA = 'fhsa'
    NON_REGISTERED = 'non_registered'


class TaxTreatment(str, Enum):
    TAX_DEFERRED = 'pretax'
    TAX_FREE = 'tax_free'
    TAXABLE = 'taxable'


_TREATMENTS = {
    AccountType.RRSP: TaxTreatment.TAX_DEFERRED,
    AccountType.TFSA: TaxTreatment.TAX_FREE,
    AccountType.FHSA: TaxTreatment.TAX_FREE,
    AccountType.NON_REGISTERED: TaxTreatment.TAXABLE,
}

PRIMARY = 'primary'
SPOUSE = 'spouse'

# Fraction of a taxable account treated as cost basis when none is given
DEFAULT_BASIS_RATIO = 0.5


def get_tax_treatment(account_type):
    return _TREATMENTS[AccountType(account_type)]


def has_employer_match(account_type):
    """Group RRSPs are the only plans with an employer match."""
    return AccountType(account_type) == AccountType.RRSP


@dataclass
class Account:
    id: str
    type: AccountType
    balance: float = 0.0
    name: str = ''
    owner: str = PRIMARY
    annual_contribution: float = 0.0
    contribution_growth_rate: float = 0.0
    return_rate: float = 0.0
    employer_match_percent: Optional[float] = None
    matchable_salary_percent: Optional[float] = None
    employer_match_limit: Optional[float] = None
    basis_ratio: Optional[float] = None

    def __post_init__(self):
        self.type = AccountType(self.type)
        if not self.name:
            self.name = self.id

    @property
    def tax_treatment(self):
        return get_tax_treatment(self.type)

    @property
    def is_tax_deferred(self):
        return self.tax_treatment == TaxTreatment.TAX_DEFERRED


@dataclass
class Profile:
    current_age: int
    retirement_age: int
    life_expectancy: int
    name: str = 'Primary'
    regional_tax_rate: Optional[float] = 0.10
    benefit_amount: Optional[float] = None
    benefit_start_age: Optional[int] = None
    annual_income: Optional[float] = None
    annual_spending: Optional[float] = None
    is_first_time_home_buyer: bool = False
    spouse: Optional['Profile'] = None


@dataclass
class Assumptions:
    inflation_rate: float
    safe_withdrawal_rate: float
    retirement_return_rate: float


@dataclass
class YearlyAccountBalance:
    age: int
    year: int
    balances: Dict[str, float]
    total_balance: float
    contributions: Dict[str, float]


@dataclass
class AccumulationResult:
    yearly_balances: List[YearlyAccountBalance] = field(default_factory=list)
    final_balances: Dict[str, float] = field(default_factory=dict)
    total_at_retirement: float = 0.0
    total_at_retirement_real: float = 0.0
    breakdown_by_tax_treatment: Dict[str, float] = field(
        default_factory=lambda: {t.value: 0.0 for t in TaxTreatment})
    breakdown_by_tax_treatment_real: Dict[str, float] = field(
        default_factory=lambda: {t.value: 0.0 for t in TaxTreatment})


@dataclass(frozen=True)
class YearlyWithdrawal:
    age: int
    year: int
    withdrawals: Dict[str, float]
    remaining_balances: Dict[str, float]
    total_withdrawal: float
    fixed_income: float
    gross_income: float
    national_tax: float
    regional_tax: float
    total_tax: float
    after_tax_income: float
    target_spending: float
    mandatory_minimum: float
    total_remaining_balance: float
    realized_gains: float = 0.0

    @property
    def effective_tax_rate(self):
        return get_effective_tax_rate(self.total_tax, self.gross_income)


@dataclass
class RetirementResult:
    yearly_withdrawals: List[YearlyWithdrawal] = field(default_factory=list)
    portfolio_depletion_age: Optional[int] = None
    lifetime_taxes_paid: float = 0.0
    sustainable_monthly_withdrawal: float = 0.0
    sustainable_annual_withdrawal: float = 0.0
    sustainable_monthly_withdrawal_nominal: float = 0.0
    sustainable_annual_withdrawal_nominal: float = 0.0
    account_depletion_ages: Dict[str, Optional[int]] = field(default_factory=dict)
