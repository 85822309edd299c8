"""
Rental Kernel

Shared foundation for the rental back office:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Injectable clock for deterministic status derivation
- SQLAlchemy base, engine and delete guards
- Cached key/value settings store
"""

__version__ = "0.1.0"
