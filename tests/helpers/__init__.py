"""Test helpers module for shared test utilities.

- constants: Asset identifiers, accounts and clock values
- factories: Pool factories and failing ledger doubles
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    CUSTODY,
    DEADLINE,
    NOW,
    STARTING_BALANCE,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
)
from tests.helpers.factories import (
    FailingAssetLedger,
    FailingShareLedger,
    FixedClock,
    fund,
    ledger_state,
    make_funded_pool,
    make_pool,
)

__all__ = [
    # Constants
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "ALICE",
    "BOB",
    "CAROL",
    "CUSTODY",
    "NOW",
    "DEADLINE",
    "STARTING_BALANCE",
    # Factories
    "FixedClock",
    "FailingAssetLedger",
    "FailingShareLedger",
    "fund",
    "make_pool",
    "make_funded_pool",
    "ledger_state",
]
