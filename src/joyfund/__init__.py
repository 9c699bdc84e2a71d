"""
JoyFund waitlist tooling: CSV sheet imports and waitlist reconciliation.
"""

__version__ = "0.3.0"
