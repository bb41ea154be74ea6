"""Manual review queue and transaction type correction."""

import logging
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.classification.rules import REVIEW_PATTERNS, suggest_type
from ledgerflow.config import settings
from ledgerflow.core.exceptions import LLMError, NotFoundError
from ledgerflow.llm.client import LLMClient
from ledgerflow.models.transaction import Transaction, TransactionType
from ledgerflow.repositories.transaction import TransactionRepository
from ledgerflow.schemas.internal import TypeClassification
from ledgerflow.schemas.review import ReclassifyResult, TypeFixResult
from ledgerflow.services.audit import log_event

logger = logging.getLogger(__name__)

RECLASSIFY_PROMPT = """You are a financial transaction classifier. Determine whether each transaction is correctly classified as "income" or "expense".

Rules:
- Amounts are stored as positive numbers; the current type carries the direction
- Look at vendor names and descriptions for context
- Common income sources: payments received, deposits, refunds, salary
- Common expenses: purchases, bills, subscriptions, transfers out

Respond with JSON of this exact structure:
{"classifications": [{"id": "transaction-uuid", "correct_type": "income" or "expense", "confidence": "high" or "medium" or "low", "reason": "brief explanation"}]}"""


def _set_type(txn: Transaction, new_type: TransactionType) -> None:
    # A category always has the transaction's old type, so it can't stay.
    txn.type = new_type.value
    txn.category_id = None


class ReviewService:
    """Service for the manual review queue and bulk type fixes."""

    def __init__(self, db: AsyncSession, llm: LLMClient | None = None):
        self.db = db
        self.llm = llm or LLMClient()
        self.transaction_repo = TransactionRepository(db)

    async def _get_owned(self, user_id: UUID, transaction_id: UUID) -> Transaction:
        txn = await self.transaction_repo.get_owned(user_id, transaction_id)
        if txn is None:
            raise NotFoundError("API_001", {"transaction_id": str(transaction_id)})
        return txn

    async def candidates(self, user_id: UUID, limit: int | None = None) -> list[Transaction]:
        """Transactions whose description looks like a transfer or payment, newest first."""
        return await self.transaction_repo.get_matching_descriptions(
            user_id, REVIEW_PATTERNS, limit or settings.review_limit
        )

    async def flip_type(self, user_id: UUID, transaction_id: UUID) -> Transaction:
        """
        Toggle a transaction between income and expense.

        The category is cleared since it belonged to the old type, and the
        transaction leaves the review queue.

        Raises:
            NotFoundError: If the transaction doesn't belong to the user
        """
        txn = await self._get_owned(user_id, transaction_id)
        old_type = TransactionType(txn.type)
        _set_type(txn, old_type.flipped())
        txn.needs_review = False
        await self.db.commit()
        await log_event(
            self.db,
            user_id,
            "transaction_type_flipped",
            "transaction",
            txn.id,
            {"from": old_type.value, "to": txn.type},
        )
        await self.db.refresh(txn)
        logger.info("Transaction type flipped", extra={"transaction_id": str(txn.id)})
        return txn

    async def mark_correct(self, user_id: UUID, transaction_id: UUID) -> Transaction:
        """Accept a transaction's current type and take it off the review queue."""
        txn = await self._get_owned(user_id, transaction_id)
        txn.needs_review = False
        await self.db.commit()
        await self.db.refresh(txn)
        return txn

    async def fix_types(self, user_id: UUID) -> TypeFixResult:
        """
        Correct types across all of a user's transactions using description patterns.

        Returns:
            How many transactions were checked and fixed
        """
        transactions = await self.transaction_repo.get_by_user(user_id, limit=None)
        fixed = 0
        cleared = 0
        for txn in transactions:
            suggested = suggest_type(txn.description, txn.provider_category)
            if suggested is None or suggested.value == txn.type:
                continue
            if txn.category_id is not None:
                cleared += 1
            _set_type(txn, suggested)
            fixed += 1

        result = TypeFixResult(checked=len(transactions), fixed=fixed, categories_cleared=cleared)
        await self.db.commit()
        if fixed:
            await log_event(self.db, user_id, "transaction_types_fixed", "transaction", details=result.model_dump())
        logger.info("Transaction types fixed", extra={"checked": len(transactions), "fixed": fixed})
        return result

    async def reclassify_types(self, user_id: UUID) -> ReclassifyResult:
        """
        Ask the language model to verify the type of the most recent transactions.

        Raises:
            LLMError: If the model call fails or its answer isn't JSON
        """
        transactions = await self.transaction_repo.get_by_user(user_id, limit=settings.reclassify_limit)
        if not transactions:
            return ReclassifyResult(analyzed=0, changed=0, unchanged=0)

        lines = "\n".join(
            f"ID: {t.id} | Amount: {t.amount} | Current Type: {t.type} "
            f"| Vendor: {t.vendor_name or 'N/A'} | Description: {t.description}"
            for t in transactions
        )
        answer = await self.llm.complete_json(
            RECLASSIFY_PROMPT,
            f"Analyze these transactions and determine the correct type for each:\n\n{lines}",
        )
        items = answer.get("classifications") if isinstance(answer, dict) else answer
        if not isinstance(items, list):
            raise LLMError("AI_002", {"reason": "classifications missing"})

        by_id = {str(t.id): t for t in transactions}
        changed = 0
        unchanged = 0
        for item in items:
            try:
                classification = TypeClassification.model_validate(item)
            except PydanticValidationError:
                continue
            txn = by_id.get(classification.id)
            if txn is None:
                continue
            if classification.correct_type == txn.type:
                unchanged += 1
                continue
            _set_type(txn, TransactionType(classification.correct_type))
            txn.needs_review = False
            changed += 1

        result = ReclassifyResult(analyzed=len(transactions), changed=changed, unchanged=unchanged)
        await self.db.commit()
        await log_event(self.db, user_id, "transaction_types_reclassified", "transaction", details=result.model_dump())
        logger.info("Transaction types reclassified", extra={"analyzed": len(transactions), "changed": changed})
        return result
