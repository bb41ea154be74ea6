"""Reconciliation: duplicate and internal-transfer detection, account reports.

``reconcile`` asks the language model to judge duplicates and transfers
across a trailing window and applies only high-confidence groups.
``report`` is a deterministic, read-only account health view over a date
range.
"""

import json
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.config import settings
from ledgerflow.core.exceptions import LLMError, NotFoundError, ReconciliationError
from ledgerflow.llm.client import LLMClient
from ledgerflow.models.transaction import Transaction, TransactionStatus, TransactionType
from ledgerflow.repositories.bank_account import BankAccountRepository
from ledgerflow.repositories.category import CategoryRepository
from ledgerflow.repositories.transaction import TransactionRepository
from ledgerflow.schemas.internal import MatchGroup, ReconciliationAnalysis
from ledgerflow.schemas.reconciliation import (
    CategoryTotal,
    DuplicateGroup,
    ReconciliationReport,
    ReconciliationResult,
    StatusCounts,
    UncategorizedItem,
    VendorTotal,
)
from ledgerflow.services.audit import log_event

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a financial reconciliation expert. Analyze transactions to identify:

1. DUPLICATE TRANSACTIONS: Same amount, same date (or within 2 days), same description
2. INTERNAL TRANSFERS: Matching amounts of opposite type on the same or adjacent dates between different accounts
   - One side is income, the other is expense
   - Same or adjacent dates (within 1-2 business days)
   - Descriptions that indicate transfers or account movements
   - These are NOT revenue or expenses

Return JSON with this structure:
{
  "duplicates": [
    {"transaction_ids": ["id1", "id2"], "reason": "Same amount and description on same date", "confidence": "high"}
  ],
  "internal_transfers": [
    {"transaction_ids": ["id1", "id2"], "reason": "Matching transfer amounts between accounts", "confidence": "high"}
  ]
}

Internal transfers move money BETWEEN accounts owned by the same user.
Only flag transactions with "high" confidence. Be conservative to avoid false positives."""

HIGH_CONFIDENCE = "high"
DUPLICATE_PENALTY = 5
UNCATEGORIZED_PENALTY = 2
UNCATEGORIZED_SAMPLE = 5


def _transaction_row(txn: Transaction) -> dict:
    return {
        "id": str(txn.id),
        "date": txn.transaction_date.isoformat(),
        "amount": str(txn.amount),
        "description": txn.description,
        "type": txn.type,
        "bank_account_id": str(txn.bank_account_id) if txn.bank_account_id else None,
    }


def _resolve(group: MatchGroup, window: dict[str, Transaction]) -> list[Transaction]:
    """Distinct transactions of a group that exist in the window, in the model's order."""
    return [window[i] for i in dict.fromkeys(group.transaction_ids) if i in window]


class ReconciliationService:
    """Service for reconciliation passes and account reports."""

    def __init__(self, db: AsyncSession, llm: LLMClient | None = None):
        self.db = db
        self.llm = llm or LLMClient()
        self.transaction_repo = TransactionRepository(db)
        self.category_repo = CategoryRepository(db)
        self.account_repo = BankAccountRepository(db)

    async def _analyze(self, transactions: list[Transaction]) -> ReconciliationAnalysis:
        user_prompt = "Analyze these transactions and identify duplicates and internal transfers:\n" + json.dumps(
            [_transaction_row(t) for t in transactions], indent=2
        )
        try:
            answer = await self.llm.complete_json(SYSTEM_PROMPT, user_prompt)
        except LLMError as e:
            logger.error("Reconciliation analysis failed", extra={"error_code": e.error_code})
            raise ReconciliationError(e.error_code, e.details, http_status=e.http_status) from e

        try:
            return ReconciliationAnalysis.model_validate(answer)
        except PydanticValidationError as e:
            logger.error("Reconciliation analysis has an unexpected shape")
            raise ReconciliationError("AI_002", {"errors": e.error_count()}, http_status=502) from e

    async def reconcile(self, user_id: UUID, today: date | None = None) -> ReconciliationResult:
        """
        Flag likely duplicates and mark internal transfers in the trailing window.

        Only groups the model reports with "high" confidence are applied.
        Duplicates keep their first transaction and flag the rest for review;
        transfers must pair exactly two transactions.

        Raises:
            ReconciliationError: If the model call fails or returns malformed output
        """
        today = today or datetime.now(timezone.utc).date()
        start = today - timedelta(days=settings.reconcile_window_days)
        transactions = await self.transaction_repo.get_since(user_id, start)

        if not transactions:
            return ReconciliationResult(
                transactions_analyzed=0,
                duplicates_found=0,
                duplicates_flagged=0,
                transfers_found=0,
                transfers_marked=0,
            )

        analysis = await self._analyze(transactions)
        window = {str(t.id): t for t in transactions}
        now = datetime.now(timezone.utc)
        duplicates_flagged = 0
        transfers_marked = 0

        for group in analysis.duplicates:
            if group.confidence != HIGH_CONFIDENCE:
                continue
            members = _resolve(group, window)
            if len(members) < 2:
                continue
            for txn in members[1:]:
                txn.needs_review = True
                txn.notes = f"Possible duplicate - {group.reason}"
                txn.reconciled_at = now
                duplicates_flagged += 1

        for group in analysis.internal_transfers:
            if group.confidence != HIGH_CONFIDENCE or len(set(group.transaction_ids)) != 2:
                continue
            members = _resolve(group, window)
            if len(members) != 2:
                continue
            for txn in members:
                txn.is_internal_transfer = True
                txn.notes = f"Internal transfer - {group.reason}"
                txn.reconciled_at = now
                transfers_marked += 1

        result = ReconciliationResult(
            transactions_analyzed=len(transactions),
            duplicates_found=len(analysis.duplicates),
            duplicates_flagged=duplicates_flagged,
            transfers_found=len(analysis.internal_transfers),
            transfers_marked=transfers_marked,
        )
        await self.db.commit()
        await log_event(self.db, user_id, "auto_reconcile", "transaction", details=result.model_dump())
        logger.info(
            "Reconciliation complete",
            extra={"analyzed": len(transactions), "flagged": duplicates_flagged + transfers_marked},
        )
        return result

    async def report(
        self, user_id: UUID, account_id: UUID, start_date: date, end_date: date
    ) -> ReconciliationReport:
        """
        Build a deterministic reconciliation report for one account.

        The health score starts at 100, loses 5 points per duplicate row
        (same amount, date and vendor) and 2 points per uncategorized row,
        and never goes below 0.

        Raises:
            NotFoundError: If the account doesn't belong to the user
        """
        account = await self.account_repo.get_owned(user_id, account_id)
        if account is None:
            raise NotFoundError("API_004", {"bank_account_id": str(account_id)})

        transactions = await self.transaction_repo.get_for_account(user_id, account_id, start_date, end_date)
        category_names = {c.id: c.name for c in await self.category_repo.get_by_user(user_id)}

        status_counts = {s.value: 0 for s in TransactionStatus}
        categories: dict[str, list[Decimal]] = defaultdict(list)
        vendors: dict[str, list[Decimal]] = defaultdict(list)
        by_key: dict[str, list[UUID]] = defaultdict(list)
        total_income = Decimal("0")
        total_expenses = Decimal("0")

        for txn in transactions:
            if txn.status in status_counts:
                status_counts[txn.status] += 1
            if txn.category_id:
                categories[category_names.get(txn.category_id, "Uncategorized")].append(txn.amount)
            if txn.vendor_name:
                vendors[txn.vendor_name].append(txn.amount)
            if txn.type == TransactionType.INCOME.value:
                total_income += txn.amount
            else:
                total_expenses += txn.amount
            key = f"{txn.amount}_{txn.transaction_date.isoformat()}_{txn.vendor_name or ''}"
            by_key[key].append(txn.id)

        duplicates = [DuplicateGroup(key=k, transaction_ids=ids) for k, ids in by_key.items() if len(ids) > 1]
        duplicate_rows = sum(len(g.transaction_ids) - 1 for g in duplicates)
        uncategorized = [t for t in transactions if t.category_id is None]

        score = 100 - DUPLICATE_PENALTY * duplicate_rows - UNCATEGORIZED_PENALTY * len(uncategorized)

        recommendations: list[str] = []
        pending = status_counts[TransactionStatus.PENDING.value]
        if pending:
            recommendations.append(
                f"You have {pending} pending transactions that need to be reviewed"
            )
        if uncategorized:
            recommendations.append(
                f"{len(uncategorized)} transactions are missing categories. "
                "Categorizing them will improve your financial insights"
            )
        if duplicates:
            recommendations.append(
                "Potential duplicate transactions detected. "
                "Review and remove duplicates to maintain accurate records"
            )

        logger.info(
            "Reconciliation report built",
            extra={"bank_account_id": str(account_id), "transactions": len(transactions)},
        )
        return ReconciliationReport(
            bank_account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            total_transactions=len(transactions),
            total_income=total_income,
            total_expenses=total_expenses,
            net=total_income - total_expenses,
            status_counts=StatusCounts(**status_counts),
            categories=[
                CategoryTotal(category=name, count=len(amounts), total=sum(amounts, Decimal("0")))
                for name, amounts in sorted(categories.items())
            ],
            vendors=[
                VendorTotal(vendor=name, count=len(amounts), total=sum(amounts, Decimal("0")))
                for name, amounts in sorted(vendors.items(), key=lambda kv: -sum(kv[1], Decimal("0")))
            ],
            duplicates=duplicates,
            uncategorized_count=len(uncategorized),
            uncategorized_sample=[
                UncategorizedItem(id=t.id, description=t.description, amount=t.amount)
                for t in uncategorized[:UNCATEGORIZED_SAMPLE]
            ],
            health_score=max(0, score),
            recommendations=recommendations,
        )
