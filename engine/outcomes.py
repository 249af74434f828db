from engine.models import RetirementResult


def summarize_retirement(yearly_withdrawals, portfolio_depletion_age, account_depletion_ages,
                         accumulation, assumptions):
    """
    Build the RetirementResult for a finished simulation.

    Sustainable withdrawals use the real (today's dollars) portfolio value;
    the nominal versions use the value at retirement.
    """
    lifetime_taxes = sum(y.total_tax for y in yearly_withdrawals)

    annual_real = accumulation.total_at_retirement_real * assumptions.safe_withdrawal_rate
    annual_nominal = accumulation.total_at_retirement * assumptions.safe_withdrawal_rate

    return RetirementResult(
        yearly_withdrawals=list(yearly_withdrawals),
        portfolio_depletion_age=portfolio_depletion_age,
        lifetime_taxes_paid=lifetime_taxes,
        sustainable_monthly_withdrawal=annual_real / 12,
        sustainable_annual_withdrawal=annual_real,
        sustainable_monthly_withdrawal_nominal=annual_nominal / 12,
        sustainable_annual_withdrawal_nominal=annual_nominal,
        account_depletion_ages=dict(account_depletion_ages),
    )
