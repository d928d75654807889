"""Audit logging package."""

from budgetwise.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
