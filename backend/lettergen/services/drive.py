"""
Google Drive service for letter documents.
Handles template copying and document naming/URLs.
"""

import logging
from datetime import date

from lettergen.config import DEFAULT_DOCUMENT_URL_TEMPLATE

logger = logging.getLogger(__name__)


class CopyFailedError(Exception):
    """Raised when Drive refuses to copy the template document."""
    def __init__(self, message: str, error_code: str = "copy_failed"):
        super().__init__(message)
        self.error_code = error_code
        self.message = message


def build_document_name(name: str, today: date) -> str:
    """Display name for a generated letter: "<name> <YYYY-MM-DD>"."""
    return f"{name} {today.isoformat()}"


def document_url(document_id: str, url_template: str = DEFAULT_DOCUMENT_URL_TEMPLATE) -> str:
    """Build the browser link for a generated document."""
    return url_template.format(document_id=document_id)


def copy_template(drive_service, template_id: str, new_name: str) -> str:
    """
    Copy a template document into a new file.

    Every call creates a new file; nothing is cleaned up if later steps fail.

    Args:
        drive_service: Google Drive v3 discovery client
        template_id: File ID of the template to copy
        new_name: Display name of the copy

    Returns:
        File ID of the new document

    Raises:
        CopyFailedError: If the copy request fails or returns no file ID
    """
    try:
        copied = drive_service.files().copy(
            fileId=template_id,
            body={"name": new_name},
            fields="id",
            supportsAllDrives=True,
        ).execute()
    except Exception as e:
        raise CopyFailedError(f"Failed to copy template {template_id}: {str(e)}") from e

    document_id = (copied or {}).get("id")
    if not document_id:
        raise CopyFailedError(f"Copy of template {template_id} returned no file ID")

    logger.info("Created document %s (%s)", document_id, new_name)
    return document_id
