"""
Payroll Journal Engine - Routers Package

FastAPI route handlers.

Routers:
- payroll_journals: Journal preview, allocation split, document numbers and pay dates
"""

from app.routers import payroll_journals

__all__ = [
    "payroll_journals",
]
