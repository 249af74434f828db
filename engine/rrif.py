from engine.constants import RRIF_START_AGE, RRIF_TABLE

_LAST_TABLE_AGE = max(RRIF_TABLE)


def get_rrif_factor(age):
    """Minimum withdrawal fraction for ``age`` (0 before payments start)."""
    if age < RRIF_START_AGE:
        return 0
    if age >= _LAST_TABLE_AGE:
        return RRIF_TABLE[_LAST_TABLE_AGE]
    return RRIF_TABLE.get(int(age), 0)


def compute_mandatory_minimum(age, pool_balance):
    """
    Required RRIF withdrawal for one person.

    Args:
        age: Owner's age at the start of the year
        pool_balance: Combined balance of the owner's tax-deferred accounts
    """
    if pool_balance <= 0:
        return 0
    return pool_balance * get_rrif_factor(age)
