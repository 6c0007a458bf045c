"""
Letter generation workflow.

For each requested email: look up the employee row, copy the letter
template, fill in the placeholders, and report a link to the new document.

Failure handling:
  - Sheet fetch fails      -> empty result list (or raise, if
                              settings.raise_on_fetch_error is set)
  - Email not in the sheet -> failed entry, processing continues
  - Copy / update fails    -> "record" mode: failed entry, continue
                              "truncate" mode: return results so far
"""

import logging
from datetime import date
from typing import Callable, List

from lettergen.config import Settings
from lettergen.models.letter import LetterResult
from lettergen.services.doc_template import UpdateFailedError, apply_substitutions
from lettergen.services.drive import (
    CopyFailedError,
    build_document_name,
    copy_template,
    document_url,
)
from lettergen.services.sheet_reader import SheetReadError, fetch_records

logger = logging.getLogger(__name__)


class LetterGenerator:
    """
    Generates compensation letters from the employee sheet.

    The Sheets source, Docs client and Drive client are passed in so the
    workflow can run against fakes in tests.
    """

    def __init__(
        self,
        table,
        docs,
        drive,
        settings: Settings,
        today: Callable[[], date] = date.today,
    ):
        self.table = table
        self.docs = docs
        self.drive = drive
        self.settings = settings
        self.today = today

    def generate_letters(self, emails: List[str]) -> List[LetterResult]:
        """
        Generate one letter per known email.

        Results keep the order of `emails`; with the default "record"
        failure mode there is exactly one result per requested email.
        """
        results: List[LetterResult] = []
        if not emails:
            return results

        try:
            records = fetch_records(
                self.table, self.settings.spreadsheet_id, self.settings.sheet_range
            )
        except SheetReadError as e:
            if self.settings.raise_on_fetch_error:
                raise
            logger.error("Sheet fetch failed (%s): %s", e.error_code, e.message)
            return results

        today = self.today()

        for email in emails:
            record = records.get(email)
            if record is None:
                logger.warning("No employee row for %s", email)
                results.append(LetterResult(email=email, url="", is_success=False))
                continue

            try:
                document_id = copy_template(
                    self.drive,
                    self.settings.template_document_id,
                    build_document_name(record.name, today),
                )
                apply_substitutions(self.docs, document_id, record, today)
            except (CopyFailedError, UpdateFailedError) as e:
                logger.error("Letter for %s failed (%s): %s", email, e.error_code, e.message)
                if self.settings.item_failure_mode == "truncate":
                    return results
                results.append(LetterResult(email=email, url="", is_success=False))
                continue

            results.append(
                LetterResult(
                    email=email,
                    url=document_url(document_id, self.settings.document_url_template),
                    is_success=True,
                )
            )

        return results
