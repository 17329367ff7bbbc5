"""Validation package."""

from billqr.validation.validator import BillValidator

__all__ = ["BillValidator"]
