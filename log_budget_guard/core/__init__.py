"""
Core modules for Log Budget Guard.

This package contains the budget proration, usage aggregation and
per-project evaluation logic, plus the audit run that drives them.
"""
