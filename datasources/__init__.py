"""
Typed accessors over upstream services.

This package contains:
- transaction_api: Balances, chain metadata, Safes, tokens and transactions
- swaps_api: Swap orders from the order book
"""
