"""
Letter template substitution service.

Fills the {{...}} placeholders of a copied letter document with an
employee's data using a single Google Docs batchUpdate.

Public API:
  build_replace_requests(record, today) -> list[dict]
  apply_substitutions(docs_service, document_id, record, today=None) -> int
"""

import logging
from datetime import date
from typing import Optional

from lettergen.models.letter import EmployeeRecord

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Placeholders
# ---------------------------------------------------------------------------

# Applied in this order. base_pay has no placeholder.
PLACEHOLDERS: list[tuple[str, str]] = [
    ("{{Preferred Name}}", "name"),
    ("{{#}}", "employee_id"),
    ("{{Base Currency}}", "base_currency"),
    ("{{Change Base Pay Request}}", "change_base_pay"),
    ("{{Raise Effective Date}}", "raise_effective_date"),
    ("{{Stock Quantity}}", "stock_quantity"),
    ("{{Vesting Date}}", "vesting_date"),
    ("{{Bonus Structure Change}}", "bonus_structure_change"),
    ("{{Bonus Effective Date}}", "bonus_effective_date"),
]

DATE_PLACEHOLDER = "{{date}}"


class UpdateFailedError(Exception):
    """Raised when the Docs API rejects the substitution batch."""
    def __init__(self, message: str, error_code: str = "update_failed"):
        super().__init__(message)
        self.error_code = error_code
        self.message = message


def _replace_all_text(placeholder: str, value: str) -> dict:
    return {
        "replaceAllText": {
            "containsText": {"text": placeholder, "matchCase": True},
            "replaceText": value,
        }
    }


def build_replace_requests(record: EmployeeRecord, today: date) -> list[dict]:
    """
    Build the ordered replaceAllText requests for one employee.

    The record's placeholders come first, followed by {{date}} as YYYY-MM-DD.
    """
    requests = [
        _replace_all_text(placeholder, getattr(record, field))
        for placeholder, field in PLACEHOLDERS
    ]
    requests.append(_replace_all_text(DATE_PLACEHOLDER, today.isoformat()))
    return requests


def apply_substitutions(
    docs_service,
    document_id: str,
    record: EmployeeRecord,
    today: Optional[date] = None,
) -> int:
    """
    Replace every placeholder in the document with the record's values.

    All replacements go out in one batchUpdate, which Docs applies atomically:
    either every replacement lands or none does.

    Returns:
        Total number of occurrences replaced, as reported by Docs.

    Raises:
        UpdateFailedError: If the batch request fails.
    """
    if today is None:
        today = date.today()

    body = {"requests": build_replace_requests(record, today)}

    try:
        response = docs_service.documents().batchUpdate(
            documentId=document_id, body=body
        ).execute()
    except Exception as e:
        raise UpdateFailedError(
            f"Failed to update document {document_id}: {str(e)}"
        ) from e

    replaced = 0
    for reply in (response or {}).get("replies", []):
        replaced += (reply.get("replaceAllText") or {}).get("occurrencesChanged", 0)

    logger.debug("Replaced %d placeholder occurrences in %s", replaced, document_id)
    return replaced
