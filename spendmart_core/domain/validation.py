"""Purchase draft validation - runs before any I/O"""

from typing import Dict, Optional, Sequence

from spendmart_core.config import settings
from spendmart_core.domain.exceptions import ValidationError
from spendmart_core.domain.models import (
    STATUS_OPTIONS,
    ItemStatus,
    PaymentMethod,
    PurchaseDraft,
    ValidatedPurchase,
)
from spendmart_core.domain.money import fits_money_precision, parse_amount


def validate_purchase(draft: PurchaseDraft, allowed_terms: Optional[Sequence[int]] = None) -> ValidatedPurchase:
    """
    Check a draft and normalise its fields.

    Rules:
    - a category must be selected
    - title must be non-empty after trimming
    - amount must parse, be >= 0 and fit the stored precision
    - status must be one the payment method offers
    - credit and shortfall terms must be among the allowed terms

    Raises:
        ValidationError: With one message per offending field
    """
    allowed_terms = tuple(allowed_terms or settings.allowed_terms)
    errors: Dict[str, str] = {}

    category_id = (draft.category_id or "").strip()
    if not category_id:
        errors["category_id"] = "Please choose a category."

    title = (draft.title or "").strip()
    if not title:
        errors["title"] = "Enter a title."

    amount = None
    if draft.amount is None:
        errors["amount"] = "Enter a valid amount."
    else:
        try:
            amount = parse_amount(draft.amount)
        except ValueError:
            errors["amount"] = "Enter a valid amount."
        else:
            if not fits_money_precision(amount):
                errors["amount"] = "Enter a valid amount."
            elif amount < 0:
                errors["amount"] = "Amount cannot be negative."

    method = draft.payment_method
    status = draft.status
    if method == PaymentMethod.WALLET_CREDIT:
        # Split payments come out of the shortfall flow, never chosen directly
        errors["payment_method"] = "Choose Wallet or Credit."
    elif not draft.just_save and status not in STATUS_OPTIONS[method]:
        options = ", ".join(s.value for s in STATUS_OPTIONS[method])
        errors["status"] = f"{method.value} purchases must be one of: {options}."

    if method == PaymentMethod.CREDIT and draft.installments not in allowed_terms:
        errors["installments"] = f"Term must be one of {list(allowed_terms)} months."

    if draft.shortfall_installments is not None:
        if method != PaymentMethod.WALLET:
            errors["shortfall_installments"] = "Only wallet purchases can move a shortfall to credit."
        elif draft.shortfall_installments not in allowed_terms:
            errors["shortfall_installments"] = f"Term must be one of {list(allowed_terms)} months."

    if errors:
        raise ValidationError("Purchase is not valid", errors)

    return ValidatedPurchase(
        title=title,
        amount=amount,
        category_id=category_id,
        purchase_date=draft.purchase_date,
        payment_method=method,
        status=ItemStatus(status),
        installments=draft.installments,
        shortfall_installments=draft.shortfall_installments,
        just_save=draft.just_save,
        details=draft.details,
    )
