"""
Service configuration.
Values come from environment variables (optionally via a .env file).
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_SPREADSHEET_ID = "1PKSLn3MAo08O25Hj73OLtP-mP80Z4CQfsa-zJA5PTTE"
DEFAULT_SHEET_RANGE = "Sheet1"
DEFAULT_TEMPLATE_DOCUMENT_ID = "1mh_RM0Xu-M4N58sCZcdCSVqQOl-k9GeXFKkyhnAcCPM"
DEFAULT_DOCUMENT_URL_TEMPLATE = "https://docs.google.com/document/d/{document_id}"

TABLE_SOURCES = {"google", "workbook"}

# "record": a failed copy/substitution becomes a failed entry and processing continues.
# "truncate": stop and return what has been generated so far.
ITEM_FAILURE_MODES = {"record", "truncate"}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str = DEFAULT_SPREADSHEET_ID
    sheet_range: str = DEFAULT_SHEET_RANGE
    template_document_id: str = DEFAULT_TEMPLATE_DOCUMENT_ID
    document_url_template: str = DEFAULT_DOCUMENT_URL_TEMPLATE
    table_source: str = "google"
    credentials_file: str = "files/credentials.json"
    token_file: str = "files/token.json"
    service_account_file: str | None = None
    item_failure_mode: str = "record"
    raise_on_fetch_error: bool = False
    host: str = "0.0.0.0"
    port: int = 8080


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_choice(name: str, default: str, choices: set[str]) -> str:
    value = (os.getenv(name) or default).strip().lower()
    if value not in choices:
        raise ValueError(
            f"{name} must be one of {', '.join(sorted(choices))}, got {value!r}"
        )
    return value


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    A .env file in the working directory is loaded first; variables already
    set in the process environment take precedence.

    Raises:
        ValueError: If an enumerated or numeric variable has an invalid value.
    """
    load_dotenv()

    port_raw = os.getenv("PORT", "8080").strip()
    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer, got {port_raw!r}")

    return Settings(
        spreadsheet_id=os.getenv("SPREADSHEET_ID", DEFAULT_SPREADSHEET_ID),
        sheet_range=os.getenv("SHEET_RANGE", DEFAULT_SHEET_RANGE),
        template_document_id=os.getenv("TEMPLATE_DOCUMENT_ID", DEFAULT_TEMPLATE_DOCUMENT_ID),
        document_url_template=os.getenv("DOCUMENT_URL_TEMPLATE", DEFAULT_DOCUMENT_URL_TEMPLATE),
        table_source=_env_choice("TABLE_SOURCE", "google", TABLE_SOURCES),
        credentials_file=os.getenv("GOOGLE_CREDENTIALS_FILE", "files/credentials.json"),
        token_file=os.getenv("GOOGLE_TOKEN_FILE", "files/token.json"),
        service_account_file=os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE") or None,
        item_failure_mode=_env_choice("ITEM_FAILURE_MODE", "record", ITEM_FAILURE_MODES),
        raise_on_fetch_error=_env_bool("RAISE_ON_FETCH_ERROR", False),
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
    )
