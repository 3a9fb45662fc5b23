"""
LinguaLevel Test Suite
======================

Test Organization
-----------------
- tests/unit/          : Fast unit tests (no external dependencies)
- tests/unit/domain/   : Domain model tests (Learner aggregate)

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test business logic
- Redis is mocked with pytest-mock; services run over the in-memory store
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
