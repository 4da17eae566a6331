"""
Form enrichment and the registration gate.

A verified Tapu is a better source than a hurried user for the secondary
fields (parcel, district, area), but only where the user left them blank.
The Ada number itself is never rewritten: it was the claim under test.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR

from .exceptions import RegistrationBlockedError
from .models import LandRecordDraft, VerificationOutcome, Verified


def apply_verification(
    draft: LandRecordDraft, outcome: VerificationOutcome
) -> LandRecordDraft:
    """Return a copy of ``draft`` enriched from a Verified outcome.

    Any other outcome returns the draft unchanged.
    """
    if not isinstance(outcome, Verified):
        return draft

    fields = outcome.fields
    updates: dict[str, str] = {}

    if not draft.parsel_number.strip() and fields.parsel_number:
        updates["parsel_number"] = fields.parsel_number
    if not draft.district.strip() and fields.district:
        updates["district"] = fields.district
    if not draft.area_value.strip() and fields.area_value is not None:
        # Whole square metres, as the registry records them
        updates["area_value"] = str(fields.area_value.to_integral_value(rounding=ROUND_FLOOR))

    parsel = updates.get("parsel_number", draft.parsel_number)
    updates["survey_no"] = f"Ada: {fields.ada_number} / Parsel: {parsel}"

    return draft.model_copy(update=updates)


def require_verified(outcome: VerificationOutcome | None) -> Verified:
    """Gate a registration write on a Verified outcome.

    Raises:
        RegistrationBlockedError: With the outcome's evidence (scores,
            confidences) in ``details`` for anything but Verified.
    """
    if isinstance(outcome, Verified):
        return outcome

    if outcome is None:
        raise RegistrationBlockedError(
            "Registration blocked: no Tapu document has been verified."
        )

    raise RegistrationBlockedError(
        f"Registration blocked: {outcome.message}",
        outcome.model_dump(mode="json"),
    )
