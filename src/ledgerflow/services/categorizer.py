"""AI categorization of transactions.

One prompt per batch: the user's category catalogue plus one line per
transaction. Answers are applied in order, the i-th answer to the i-th
transaction. The transaction's type is never changed here; the category is
always resolved within that type so a transaction and its category agree.

A failed or unparsable model call abandons the whole batch. Nothing is
retried and nothing checks whether a transaction was categorized before.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.core.exceptions import CategorizationError, LLMError
from ledgerflow.llm.client import LLMClient
from ledgerflow.models.transaction import Transaction, TransactionType
from ledgerflow.repositories.category import CategoryRepository
from ledgerflow.repositories.transaction import TransactionRepository
from ledgerflow.schemas.categorization import CategorizationItemResult, CategorizationResult
from ledgerflow.schemas.internal import CategorizationSuggestion
from ledgerflow.services.categories import CategoryService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert bookkeeper. Analyze each transaction and assign the most appropriate category.
CRITICAL: The transaction type (income or expense) is already determined and shown in each transaction. You MUST respect this type designation.

EXISTING INCOME CATEGORIES:
{income_categories}

EXISTING EXPENSE CATEGORIES:
{expense_categories}

IMPORTANT RULES:
1. The transaction type (income/expense) is ALREADY DETERMINED - DO NOT CHANGE IT
2. Prefer an existing category; suggest a NEW category only if none fits
3. Be specific and professional with category names
4. Mark tax_deductible true only for ordinary and necessary business expenses

Common patterns:
INCOME (money coming IN): client payments = "Service Revenue", product sales = "Sales Revenue",
interest earned = "Interest Income", refunds = "Refunds & Returns".
EXPENSE (money going OUT): payroll services (Gusto, ADP) = "Payroll Processing",
Facebook/Meta ads = "Social Media Advertising", Google ads = "Digital Advertising",
restaurants = "Meals & Entertainment", AWS/cloud = "Cloud Services & Hosting",
Stripe/Square fees = "Payment Processing Fees", rent = "Rent & Lease",
bank fees = "Bank Fees & Charges", software = "Software & Subscriptions"."""

USER_PROMPT = """Categorize these transactions, one answer per line, in the same order. Return ONLY valid JSON:
{{"transactions": [{{"type": "income" or "expense", "category": "category name", "is_new_category": true/false, "tax_deductible": true/false, "confidence": 0.0-1.0}}]}}

Transactions:
{lines}"""


def format_transaction_line(txn: Transaction) -> str:
    return (
        f"{txn.description or ''} | {txn.vendor_name or ''} | Amount: ${txn.amount} "
        f"| Type: {txn.type} | Date: {txn.transaction_date.isoformat()}"
    )


class CategorizationService:
    """Service that asks the language model to categorize transaction batches."""

    def __init__(self, db: AsyncSession, llm: LLMClient | None = None):
        """
        Initialize the service.

        Args:
            db: Database session
            llm: Language model client (defaults to one built from settings)
        """
        self.db = db
        self.llm = llm or LLMClient()
        self.category_repo = CategoryRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.category_service = CategoryService(db)

    async def build_prompts(self, user_id: UUID, transactions: list[Transaction]) -> tuple[str, str]:
        """Build the system and user prompts for one batch."""
        categories = await self.category_repo.get_by_user(user_id)
        income = [c.name for c in categories if c.type == TransactionType.INCOME.value]
        expense = [c.name for c in categories if c.type == TransactionType.EXPENSE.value]
        system = SYSTEM_PROMPT.format(
            income_categories=", ".join(income) or "(none)",
            expense_categories=", ".join(expense) or "(none)",
        )
        user = USER_PROMPT.format(lines="\n".join(format_transaction_line(t) for t in transactions))
        return system, user

    async def _suggest(self, user_id: UUID, transactions: list[Transaction]) -> list[CategorizationSuggestion | None]:
        system, user = await self.build_prompts(user_id, transactions)
        try:
            answer = await self.llm.complete_json(system, user)
        except LLMError as e:
            logger.error(
                "Categorization batch abandoned",
                extra={"error_code": e.error_code, "batch_size": len(transactions)},
            )
            raise CategorizationError(e.error_code, e.details, http_status=e.http_status) from e

        items = answer.get("transactions") if isinstance(answer, dict) else answer
        if not isinstance(items, list):
            logger.error("Categorization batch abandoned: answer is not a list")
            raise CategorizationError("AI_002", http_status=502)

        suggestions: list[CategorizationSuggestion | None] = []
        for item in items:
            try:
                suggestions.append(CategorizationSuggestion.model_validate(item))
            except PydanticValidationError:
                suggestions.append(None)
        return suggestions

    async def categorize(self, user_id: UUID, transactions: list[Transaction]) -> CategorizationResult:
        """
        Categorize a batch of the user's transactions.

        Args:
            user_id: Owner of the transactions and categories
            transactions: Transactions to categorize, in prompt order

        Returns:
            Per-transaction results and counts

        Raises:
            CategorizationError: If the model call fails or its answer is unusable
        """
        if not transactions:
            return CategorizationResult(results=[], categorized=0, new_categories=0, total=0)

        suggestions = await self._suggest(user_id, transactions)
        now = datetime.now(timezone.utc)
        results: list[CategorizationItemResult] = []

        for index, txn in enumerate(transactions):
            suggestion = suggestions[index] if index < len(suggestions) else None
            if suggestion is None:
                results.append(
                    CategorizationItemResult(
                        transaction_id=txn.id,
                        success=False,
                        error="No categorization found for transaction",
                    )
                )
                continue

            txn_type = TransactionType(txn.type)
            if suggestion.type and suggestion.type != txn_type.value:
                logger.info(
                    "Model suggested a different type; keeping transaction type",
                    extra={"transaction_id": str(txn.id)},
                )

            category, created = await self.category_service.find_or_create(
                user_id, suggestion.category, txn_type
            )
            txn.category_id = category.id
            txn.tax_deductible = suggestion.tax_deductible
            txn.ai_confidence_score = suggestion.confidence
            txn.ai_processed_at = now
            txn.needs_review = False

            results.append(
                CategorizationItemResult(
                    transaction_id=txn.id,
                    success=True,
                    category=category.name,
                    category_id=category.id,
                    type=txn_type,
                    is_new_category=created,
                    tax_deductible=suggestion.tax_deductible,
                    confidence=suggestion.confidence,
                )
            )

        await self.db.commit()

        categorized = sum(1 for r in results if r.success)
        new_categories = sum(1 for r in results if r.success and r.is_new_category)
        logger.info(
            "Categorization batch applied",
            extra={"categorized": categorized, "total": len(transactions), "new_categories": new_categories},
        )
        return CategorizationResult(
            results=results,
            categorized=categorized,
            new_categories=new_categories,
            total=len(transactions),
        )

    async def categorize_ids(self, user_id: UUID, transaction_ids: list[UUID]) -> CategorizationResult:
        """Categorize the user's transactions with the given ids (unknown ids are ignored)."""
        transactions = await self.transaction_repo.get_by_ids(user_id, transaction_ids)
        return await self.categorize(user_id, transactions)

    async def categorize_uncategorized(self, user_id: UUID, limit: int) -> CategorizationResult:
        """Categorize the next batch of transactions without a category."""
        transactions = await self.transaction_repo.get_uncategorized(user_id, limit)
        return await self.categorize(user_id, transactions)
