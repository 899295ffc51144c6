"""
SupplyLens Test Suite
=====================

Test organization:
- tests/services/risk_engine/   - Risk engine unit and API tests
                                  (in-memory repository, no databases)

Run tests:
    pytest                                  # All tests
    pytest tests/services/risk_engine -k cascade
"""
