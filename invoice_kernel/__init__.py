"""
Invoice Kernel

Domain records, numeric coercion, typed errors and structured logging
shared by the invoice tax computation engine:
- Immutable input and output records
- Decimal-only monetary arithmetic with explicit 2dp rounding
- Permissive and strict input parsing
"""

__version__ = "0.1.0"
