"""Entry-time validation package."""

from prismsplit.validation.validator import BillValidator

__all__ = ["BillValidator"]
