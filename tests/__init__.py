"""
Partner Graph Test Suite
========================

Test organization:
- tests/unit/                 - Config and client utilities (no external dependencies)
- tests/services/<service>/   - Service logic with mocked graph, Kafka and SQL clients
- tests/integration/          - Live graph tests (require NEO4J_TEST_URI)

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest -m "not integration"     # Skip integration tests
"""
