"""Merge untrusted receipt extraction output into an editable purchase draft"""

from datetime import date
from typing import Optional

from spendmart_core.domain.models import ItemDetails, PurchaseDraft, ReceiptSuggestion

FALLBACK_TITLE = "Receipt"


def draft_from_receipt(
    suggestion: ReceiptSuggestion,
    category_id: Optional[str] = None,
    today: Optional[date] = None,
) -> PurchaseDraft:
    """
    Pre-fill a draft from OCR output.

    Extracted values are suggestions only: a missing or negative amount is
    left blank for the user to type, a missing date falls back to today, and
    the raw text is kept as the item description. The result must still go
    through validate_purchase before it can be submitted.
    """
    amount = suggestion.amount if suggestion.amount is not None and suggestion.amount >= 0 else None
    title = (suggestion.merchant or "").strip() or FALLBACK_TITLE
    raw_text = suggestion.raw_text.strip()

    return PurchaseDraft(
        title=title,
        amount=amount,
        category_id=category_id,
        purchase_date=suggestion.date or today or date.today(),
        details=ItemDetails(description=raw_text or None),
    )
