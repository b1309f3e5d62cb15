"""
Service layer.

This package contains:
- transactions_service: Balances, chain metadata, transaction details, history and queue
- factory: Explicit composition of the service from settings
"""
