from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict

from engine.models import TaxTreatment

# Gain ratio assumed when the balance is gone and basis/balance is meaningless
FALLBACK_GAIN_RATIO = 0.5


@dataclass
class AccountState:
    """Working copy of one account for a single simulation run."""
    id: str
    treatment: TaxTreatment
    owner: str
    balance: float
    cost_basis: float = 0.0


@dataclass
class WithdrawalResult:
    total: float = 0.0
    rrsp_withdrawal: float = 0.0
    tax_free_withdrawal: float = 0.0
    taxable_withdrawal: float = 0.0
    taxable_gains: float = 0.0
    by_account: Dict[str, float] = field(default_factory=dict)

    def record(self, state, amount):
        self.by_account[state.id] = self.by_account.get(state.id, 0) + amount
        self.total += amount


class WithdrawalStrategy(ABC):
    """Abstract base class for withdrawal strategies"""

    @abstractmethod
    def execute(self, account_states, target_spending, mandatory_minimum,
                fixed_income, bracket_ceiling):
        """
        Fund one year of spending by drawing down ``account_states`` in place.

        Returns:
            WithdrawalResult with amounts per account and per category
        """
        pass


class TaxOptimizedStrategy(WithdrawalStrategy):
    """
    Household withdrawal order:
    1. RRIF minimums (forced)
    2. RRSP up to the household first-bracket ceiling
    3. Tax-free (TFSA/FHSA)
    4. Non-registered, tracking realized gains
    5. Remaining RRSP, no bracket limit
    """

    def execute(self, account_states, target_spending, mandatory_minimum,
                fixed_income, bracket_ceiling):
        """Execute the tax-optimized strategy."""
        result = WithdrawalResult(by_account={acc.id: 0 for acc in account_states})

        rrsp_accounts = [a for a in account_states if a.treatment == TaxTreatment.TAX_DEFERRED]
        tax_free_accounts = [a for a in account_states if a.treatment == TaxTreatment.TAX_FREE]
        taxable_accounts = [a for a in account_states if a.treatment == TaxTreatment.TAXABLE]

        remaining_need = max(0, target_spending - fixed_income)

        # Step 1: RRIF minimums are income even when the need is already met
        minimum_left = mandatory_minimum
        for acc in rrsp_accounts:
            if minimum_left <= 0:
                break
            take = min(minimum_left, acc.balance)
            self._take(acc, take, result)
            result.rrsp_withdrawal += take
            minimum_left -= take
            remaining_need = max(0, remaining_need - take)

        # Step 2: Fill the lowest bracket. Household income is compared with
        # a single household ceiling, which models pension income splitting.
        for acc in rrsp_accounts:
            if remaining_need <= 0:
                break
            household_income = result.rrsp_withdrawal + fixed_income
            room = max(0, bracket_ceiling - household_income)
            take = min(room, remaining_need, acc.balance)
            if take > 0:
                self._take(acc, take, result)
                result.rrsp_withdrawal += take
                remaining_need = max(0, remaining_need - take)

        # Step 3: Tax-free
        for acc in tax_free_accounts:
            if remaining_need <= 0:
                break
            take = min(remaining_need, acc.balance)
            self._take(acc, take, result)
            result.tax_free_withdrawal += take
            remaining_need = max(0, remaining_need - take)

        # Step 4: Non-registered
        for acc in taxable_accounts:
            if remaining_need <= 0:
                break
            take = min(remaining_need, acc.balance)
            gains = take * self.gain_ratio(acc)
            self._take(acc, take, result)
            result.taxable_withdrawal += take
            result.taxable_gains += gains
            remaining_need = max(0, remaining_need - take)

        # Step 5: Additional RRSP if needed
        for acc in rrsp_accounts:
            if remaining_need <= 0:
                break
            take = min(remaining_need, acc.balance)
            self._take(acc, take, result)
            result.rrsp_withdrawal += take
            remaining_need = max(0, remaining_need - take)

        return result

    @staticmethod
    def gain_ratio(acc):
        """Share of a withdrawal that is capital gain, from the current basis."""
        if acc.balance <= 0:
            return FALLBACK_GAIN_RATIO
        return max(0, 1 - acc.cost_basis / acc.balance)

    @staticmethod
    def _take(acc, amount, result):
        if amount <= 0:
            return
        before = acc.balance
        acc.balance = max(0, before - amount)
        if acc.treatment == TaxTreatment.TAXABLE:
            # Basis shrinks by the same fraction as the balance
            if acc.balance > 0:
                acc.cost_basis *= acc.balance / before
            else:
                acc.cost_basis = 0
        result.record(acc, amount)
