"""
Household Budget Engine - Source Package

The financial reconciliation and scheduling core of a household
budgeting application.

DESIGN PRINCIPLES:
1. Actual values are always recomputed from the ledger, never patched
2. Fail early, fail visibly
3. No silent corrections
4. Calculations are pure; logging lives at the orchestration boundary
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Budget Team"
