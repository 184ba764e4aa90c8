"""Nuroo Test Suite

This package contains all tests for the Nuroo task pipeline.

Test organization:
- unit/: Unit tests for individual modules
  - security/: Rate limiter and input sanitizer
  - progress/: Area mapping, difficulty tiers, progress store
  - tasks/: Scheduling gate, generator, repository, cache, manager, completion, service
  - limits/: Daily chat budget and morning schedule
  - automation/: Notifications and background runner
  - agent/: Prompts and the assistant client
  - storage/, store/: Local key-value store, offline cache, document store
- integration/: Daily task flow and HTTP API

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/tasks/

    # Only integration tests
    pytest tests/integration/
"""
