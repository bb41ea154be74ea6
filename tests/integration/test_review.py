"""Integration tests for the review queue and type corrections."""

from uuid import uuid4

import pytest

from ledgerflow.core.exceptions import LLMError, NotFoundError
from ledgerflow.repositories.category import CategoryRepository
from ledgerflow.services.review import ReviewService


@pytest.fixture
async def office_supplies(db_session, test_user):
    return await CategoryRepository(db_session).find_by_name(test_user.id, "Office Supplies", "expense")


class TestManualReview:
    @pytest.mark.asyncio
    async def test_flip_clears_category(self, db_session, test_user, make_transaction, office_supplies, mock_llm):
        txn = await make_transaction(category_id=office_supplies.id, needs_review=True)

        flipped = await ReviewService(db_session, mock_llm).flip_type(test_user.id, txn.id)

        assert flipped.type == "income"
        assert flipped.category_id is None
        assert flipped.needs_review is False

    @pytest.mark.asyncio
    async def test_flip_twice_restores_type(self, db_session, test_user, make_transaction, mock_llm):
        txn = await make_transaction(type="income")
        service = ReviewService(db_session, mock_llm)

        await service.flip_type(test_user.id, txn.id)
        txn = await service.flip_type(test_user.id, txn.id)

        assert txn.type == "income"

    @pytest.mark.asyncio
    async def test_mark_correct_keeps_type(self, db_session, test_user, make_transaction, office_supplies, mock_llm):
        txn = await make_transaction(category_id=office_supplies.id, needs_review=True)

        accepted = await ReviewService(db_session, mock_llm).mark_correct(test_user.id, txn.id)

        assert accepted.type == "expense"
        assert accepted.category_id == office_supplies.id
        assert accepted.needs_review is False

    @pytest.mark.asyncio
    async def test_other_users_transaction_not_found(
        self, db_session, other_user, make_transaction, mock_llm
    ):
        txn = await make_transaction()

        with pytest.raises(NotFoundError) as exc_info:
            await ReviewService(db_session, mock_llm).flip_type(other_user.id, txn.id)

        assert exc_info.value.error_code == "API_001"
        assert txn.type == "expense"

    @pytest.mark.asyncio
    async def test_candidates_match_transfer_descriptions(self, db_session, test_user, make_transaction, mock_llm):
        venmo = await make_transaction(description="VENMO CASHOUT")
        transfer = await make_transaction(description="Online Transfer to SAV 1234")
        await make_transaction(description="Office Depot #881")

        candidates = await ReviewService(db_session, mock_llm).candidates(test_user.id)

        assert {t.id for t in candidates} == {venmo.id, transfer.id}


class TestFixTypes:
    @pytest.mark.asyncio
    async def test_patterns_fix_wrong_types(self, db_session, test_user, make_transaction, office_supplies, mock_llm):
        payroll = await make_transaction(description="ACME PAYROLL DEPOSIT", category_id=office_supplies.id)
        transfer = await make_transaction(description="Transfer to savings", type="income")
        card = await make_transaction(description="Credit card payment", type="income")
        untouched = await make_transaction()

        result = await ReviewService(db_session, mock_llm).fix_types(test_user.id)

        assert result.checked == 4
        assert result.fixed == 3
        assert result.categories_cleared == 1
        assert payroll.type == "income"
        assert payroll.category_id is None
        assert transfer.type == "expense"
        assert card.type == "expense"
        assert untouched.type == "expense"

    @pytest.mark.asyncio
    async def test_nothing_to_fix(self, db_session, test_user, make_transaction, mock_llm):
        await make_transaction()

        result = await ReviewService(db_session, mock_llm).fix_types(test_user.id)

        assert result.fixed == 0


class TestReclassify:
    @pytest.mark.asyncio
    async def test_applies_model_types(self, db_session, test_user, make_transaction, office_supplies, mock_llm):
        refund = await make_transaction(description="Amazon refund", category_id=office_supplies.id)
        supplies = await make_transaction()
        mock_llm.complete_json.return_value = {
            "classifications": [
                {"id": str(refund.id), "correct_type": "income", "confidence": "high", "reason": "Refund"},
                {"id": str(supplies.id), "correct_type": "expense", "confidence": "high", "reason": "Purchase"},
                {"id": str(uuid4()), "correct_type": "income"},
                {"id": str(supplies.id), "correct_type": "transfer"},
            ]
        }

        result = await ReviewService(db_session, mock_llm).reclassify_types(test_user.id)

        assert result.analyzed == 2
        assert result.changed == 1
        assert result.unchanged == 1
        assert refund.type == "income"
        assert refund.category_id is None
        assert supplies.type == "expense"

        user_prompt = mock_llm.complete_json.call_args.args[1]
        assert f"ID: {refund.id} | Amount: 25.00 | Current Type: expense" in user_prompt

    @pytest.mark.asyncio
    async def test_unusable_answer(self, db_session, test_user, make_transaction, mock_llm):
        await make_transaction()
        mock_llm.complete_json.return_value = {"classifications": "all correct"}

        with pytest.raises(LLMError) as exc_info:
            await ReviewService(db_session, mock_llm).reclassify_types(test_user.id)

        assert exc_info.value.error_code == "AI_002"

    @pytest.mark.asyncio
    async def test_no_transactions(self, db_session, test_user, mock_llm):
        result = await ReviewService(db_session, mock_llm).reclassify_types(test_user.id)

        assert result.analyzed == 0
        mock_llm.complete_json.assert_not_called()


class TestReviewApi:
    @pytest.mark.asyncio
    async def test_queue_and_flip(self, client, auth_headers, make_transaction):
        txn = await make_transaction(description="Venmo payment from Sam")

        queue = await client.get("/api/v1/review", headers=auth_headers)
        assert queue.status_code == 200
        assert queue.json()["count"] == 1

        response = await client.post(f"/api/v1/review/{txn.id}/flip", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["type"] == "income"

    @pytest.mark.asyncio
    async def test_flip_unknown_transaction(self, client, auth_headers):
        response = await client.post(f"/api/v1/review/{uuid4()}/flip", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "API_001"
