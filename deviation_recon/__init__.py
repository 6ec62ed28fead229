"""
Deviation Reconciliation Engine
Purpose: Reconcile deviation tracking workbooks, classify measures by deadline,
aggregate completion statistics and export styled reports.
"""

__version__ = "1.0.0"
