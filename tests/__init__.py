"""
Test suite for Custodia

- Unit tests for validation, the provenance log, the registries and the clock
- Ledger-level invariant and scenario tests
- Persistence and notification tests
- API endpoint, authentication and configuration tests
"""
