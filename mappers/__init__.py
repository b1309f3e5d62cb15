"""
Mapping of upstream entities into client-facing transactions.

This package contains the transaction classifier and its per-kind mappers,
detail mappers, the imitation detector and the history and queue assemblers.
"""
