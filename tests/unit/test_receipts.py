"""Unit tests for receipt-to-draft merging"""

import pytest
from datetime import date
from decimal import Decimal
from spendmart_core.domain.exceptions import ValidationError
from spendmart_core.domain.models import PaymentMethod, ReceiptSuggestion
from spendmart_core.domain.receipts import draft_from_receipt
from spendmart_core.domain.validation import validate_purchase


def test_draft_from_full_receipt():
    suggestion = ReceiptSuggestion(
        merchant=" Keells Super ",
        amount=Decimal("4520.75"),
        date=date(2025, 3, 2),
        raw_text="KEELLS SUPER\nTOTAL 4,520.75\n",
    )
    draft = draft_from_receipt(suggestion, category_id="cat_1", today=date(2025, 3, 5))

    assert draft.title == "Keells Super"
    assert draft.amount == Decimal("4520.75")
    assert draft.purchase_date == date(2025, 3, 2)
    assert draft.category_id == "cat_1"
    assert draft.details.description == "KEELLS SUPER\nTOTAL 4,520.75"
    assert draft.payment_method == PaymentMethod.WALLET


def test_draft_from_empty_receipt_uses_fallbacks():
    draft = draft_from_receipt(ReceiptSuggestion(), today=date(2025, 3, 5))

    assert draft.title == "Receipt"
    assert draft.amount is None
    assert draft.purchase_date == date(2025, 3, 5)
    assert draft.details.description is None


def test_draft_drops_negative_amount():
    draft = draft_from_receipt(ReceiptSuggestion(amount=Decimal("-12")), today=date(2025, 3, 5))
    assert draft.amount is None


def test_draft_still_requires_validation():
    """Receipt data never bypasses the form rules"""
    draft = draft_from_receipt(ReceiptSuggestion(merchant="Cafe", amount=Decimal("800")), today=date(2025, 3, 5))

    with pytest.raises(ValidationError) as exc_info:
        validate_purchase(draft)
    assert "category_id" in exc_info.value.errors
