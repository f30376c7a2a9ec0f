"""
Goodies Kernel - distribution and claim allocation engine.

Owns the bounded-inventory contracts for office goodies:
- At most one claim per employee per distribution
- Never oversell (remaining_count never negative)
- Claim reversal restores inventory atomically
- Eligibility computed fresh from the office roster
"""

__version__ = "0.1.0"
