"""
Test Suite

Contains the unit tests for the price feed and swap engine.

Structure:
- tests/unit/: Tests for individual components (normalizer, price client,
  feed controller, quotes, swap submission, swap form, API)

Uses pytest with pytest-asyncio for testing async functionality.
"""
