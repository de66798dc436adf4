from finance_core.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
