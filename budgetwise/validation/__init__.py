"""Semantic checks for records before they are written."""

from budgetwise.validation.validator import RecordValidator

__all__ = ["RecordValidator"]
