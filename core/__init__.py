"""
Core infrastructure for the transaction gateway.

This package contains:
- addresses: Address checksumming and comparison
- cache: Cache-first data source with single-flight misses
- config: Application configuration and settings
- exceptions: Custom exception classes
- json_schemas: Shape contracts for upstream payloads
- logger: Logging configuration
- network: HTTP transport for upstream services
- pagination: Opaque cursors and page envelopes
- schema: Pydantic models for validated upstream data
- validation: JSON-schema registration, compilation and violation records
"""
