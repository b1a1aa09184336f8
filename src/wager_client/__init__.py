"""
Threshold Wager Client.

An async client for a binary-outcome wagering contract. Users propose a
threshold claim, others stake on either side, and a Pyth price update ends
the epoch. The client handles request validation, ledger submission,
transaction tracking and oracle evidence; the contract owns all state.
"""

__version__ = "0.1.0"
