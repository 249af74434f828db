from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from engine.constants import DEFAULT_ASSUMPTIONS, DEFAULT_PROFILE, DEFAULT_TAX_YEAR, TAX_YEARS


class AccountParams(BaseModel):
    """One savings account with its accumulation-phase settings"""
    id: str = Field(min_length=1)
    name: Optional[str] = None
    type: Literal['rrsp', 'tfsa', 'fhsa', 'non_registered']
    owner: Literal['primary', 'spouse'] = 'primary'
    balance: float = Field(ge=0, default=0)
    annual_contribution: float = Field(ge=0, default=0)
    contribution_growth_rate: float = Field(ge=-0.5, le=0.5, default=0)
    return_rate: float = Field(ge=-0.5, le=0.5, default=0)

    # Group RRSP match
    employer_match_percent: Optional[float] = Field(ge=0, le=2, default=None)
    matchable_salary_percent: Optional[float] = Field(ge=0, le=1, default=None)
    employer_match_limit: Optional[float] = Field(ge=0, default=None)

    # Non-registered only: share of the balance that is cost basis
    basis_ratio: Optional[float] = Field(ge=0, le=1, default=None)


class PersonParams(BaseModel):
    """Spouse attributes; only the current age is required"""
    name: Optional[str] = None
    current_age: int = Field(ge=0, le=120)
    retirement_age: Optional[int] = Field(ge=0, le=120, default=None)
    life_expectancy: Optional[int] = Field(ge=0, le=125, default=None)
    regional_tax_rate: Optional[float] = Field(ge=0, le=0.5, default=None)

    # CPP/OAS
    benefit_amount: Optional[float] = Field(ge=0, default=None)
    benefit_start_age: Optional[int] = Field(ge=60, le=70, default=None)

    # Contribution advisor inputs
    annual_income: Optional[float] = Field(ge=0, default=None)
    annual_spending: Optional[float] = Field(ge=0, default=None)
    is_first_time_home_buyer: bool = False


class ProfileParams(PersonParams):
    """Primary household member, optionally with a spouse"""
    name: Optional[str] = DEFAULT_PROFILE['name']
    current_age: int = Field(ge=0, le=120, default=DEFAULT_PROFILE['current_age'])
    retirement_age: int = Field(ge=0, le=120, default=DEFAULT_PROFILE['retirement_age'])
    life_expectancy: int = Field(ge=0, le=125, default=DEFAULT_PROFILE['life_expectancy'])
    regional_tax_rate: float = Field(ge=0, le=0.5, default=DEFAULT_PROFILE['regional_tax_rate'])
    spouse: Optional[PersonParams] = None

    @model_validator(mode='after')
    def check_ages(self):
        if self.retirement_age < self.current_age:
            raise ValueError('retirement_age must not be before current_age')
        if self.life_expectancy <= self.retirement_age:
            raise ValueError('life_expectancy must be after retirement_age')
        return self


class AssumptionsParams(BaseModel):
    inflation_rate: float = Field(ge=0, le=0.5, default=DEFAULT_ASSUMPTIONS['inflation_rate'])
    safe_withdrawal_rate: float = Field(ge=0, le=1, default=DEFAULT_ASSUMPTIONS['safe_withdrawal_rate'])
    retirement_return_rate: float = Field(ge=-0.5, le=0.5,
                                          default=DEFAULT_ASSUMPTIONS['retirement_return_rate'])


class TaxYearParams(BaseModel):
    """Tax year whose tables apply to the whole plan"""
    tax_year: int = DEFAULT_TAX_YEAR

    @field_validator('tax_year')
    @classmethod
    def check_tax_year(cls, value):
        if value not in TAX_YEARS:
            supported = ', '.join(str(y) for y in sorted(TAX_YEARS))
            raise ValueError(f'tax_year must be one of: {supported}')
        return value


class SimulationParams(TaxYearParams):
    """Complete plan: accounts, household profile and assumptions"""
    accounts: List[AccountParams] = Field(default_factory=list)
    profile: ProfileParams = Field(default_factory=ProfileParams)
    assumptions: AssumptionsParams = Field(default_factory=AssumptionsParams)
    start_year: Optional[int] = Field(ge=1900, le=2200, default=None)

    @model_validator(mode='after')
    def check_accounts(self):
        ids = [a.id for a in self.accounts]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate account ids: {', '.join(duplicates)}")
        if self.profile.spouse is None and any(a.owner == 'spouse' for a in self.accounts):
            raise ValueError('spouse-owned accounts require a spouse profile')
        return self


class ScenarioParams(SimulationParams):
    """Extends simulation params with named what-if assumption sets"""
    scenarios: Dict[str, AssumptionsParams] = Field(min_length=1)


class LimitsParams(TaxYearParams):
    profile: ProfileParams
