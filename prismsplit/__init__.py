"""
PrismSplit - Bill Splitting and Balance Ledger Engine

Turns item-level split assignments on shared bills into per-pair and
per-group balances, and suggests how a group can settle up.

DESIGN PRINCIPLES:
1. Pure functions over immutable snapshots
2. Integer minor units for every computed amount
3. Money is conserved on every bill
4. No silent corrections beyond the configured rounding tolerance
5. Storage is someone else's problem
"""

__version__ = "1.0.0"
__author__ = "PrismSplit Team"
