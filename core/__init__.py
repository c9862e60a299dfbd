"""
Core Package

Contains the shared building blocks of the price feed and swap engine:
- Schemas: Pydantic models for price records, tokens, feed state and quotes
- Providers: Abstract contracts for balance sources and swap executors
- Errors: Transport and submission exceptions
- Config / Logging: Settings loaded from the environment and the central logger
"""
