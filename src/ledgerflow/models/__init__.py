"""Database models."""
from ledgerflow.models.audit_log import AuditLog
from ledgerflow.models.bank_account import BankAccount
from ledgerflow.models.category import Category
from ledgerflow.models.transaction import Transaction, TransactionStatus, TransactionType
from ledgerflow.models.user import User

__all__ = [
    "AuditLog",
    "BankAccount",
    "Category",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "User",
]
