"""
Petty Cash - Source Package

Expense reporting for a petty-cash (caja chica) fund: staff submit
expenses, reviewers approve or reject them, and daily closes and
reports are derived from the current set of expenses.

DESIGN PRINCIPLES:
1. One ordered collection of expenses is the single source of truth
2. Status changes only through the transition service
3. Reports are recomputed from the collection, never stored
4. Every intent is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Petty Cash Team"
