"""Domain models and the token ledger.

`token` holds the pydantic models (addresses, metadata, events) and
`token_ledger` the in-memory ledger that owns balances, allowances and supply.
Persistence lives in `db` so the ledger can be exercised without a database.
"""

__all__ = [
    "token",
    "token_ledger",
]
