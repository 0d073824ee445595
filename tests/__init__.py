"""
Present engine test suite.

- unit/: isolated tests with mocks, no database
- integration/: services against SQLite (aiosqlite) and PostgreSQL (testcontainers)
"""
