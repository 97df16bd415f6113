"""
Budget Tracker - Source Package

A personal budget tracker whose whole state is one shared JSON document,
kept in sync across devices, with Chase statement import.

DESIGN PRINCIPLES:
1. Local edits are instant; the network catches up (debounced writes)
2. The document is replaced wholesale, last write wins
3. Imports are proposed, reviewed, then confirmed
4. Remote failures degrade, they never block the user
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Tracker Team"
