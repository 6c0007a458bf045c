"""
Google API client configuration.
Builds authenticated Sheets, Docs and Drive clients.

Credentials, in order of preference:
- GOOGLE_SERVICE_ACCOUNT_FILE: service-account key (server deployments)
- GOOGLE_TOKEN_FILE: cached OAuth user token, refreshed when expired
- GOOGLE_CREDENTIALS_FILE: OAuth client secrets; at startup, runs the
  consent flow once and saves the resulting token to GOOGLE_TOKEN_FILE
"""

import logging
import os
from dataclasses import dataclass

from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from lettergen.config import Settings
from lettergen.services.sheet_reader import GoogleSheetsTable, WorkbookTable

logger = logging.getLogger(__name__)

# If modifying these scopes, delete the saved token file.
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
]


class ClientConfigError(Exception):
    """Raised when Google credentials cannot be loaded or obtained."""
    def __init__(self, message: str, error_code: str = "client_config"):
        super().__init__(message)
        self.error_code = error_code
        self.message = message


@dataclass
class GoogleClients:
    """The three collaborators the letter workflow needs."""
    table: object
    docs: object
    drive: object


def _save_token(path: str, creds: Credentials) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w") as f:
        f.write(creds.to_json())
    os.chmod(path, 0o600)


def load_credentials(settings: Settings, interactive: bool = False):
    """
    Return Google credentials for the configured auth mode.

    The browser consent flow only runs when `interactive` is true (process
    startup via run()); from a request it would block on a headless server.

    Raises:
        ClientConfigError: If no usable credentials can be produced.
    """
    if settings.service_account_file:
        try:
            return service_account.Credentials.from_service_account_file(
                settings.service_account_file, scopes=SCOPES
            )
        except Exception as e:
            raise ClientConfigError(f"Unable to load service account key: {str(e)}") from e

    creds = None
    if os.path.exists(settings.token_file):
        try:
            creds = Credentials.from_authorized_user_file(settings.token_file, SCOPES)
        except Exception as e:
            logger.warning("Ignoring unreadable token file %s: %s", settings.token_file, e)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except Exception as e:
            raise ClientConfigError(f"Unable to refresh OAuth token: {str(e)}") from e
        _save_token(settings.token_file, creds)
        return creds

    if not os.path.exists(settings.credentials_file):
        raise ClientConfigError(
            f"Unable to read client secret file: {settings.credentials_file}"
        )

    if not interactive:
        raise ClientConfigError(
            f"No usable OAuth token at {settings.token_file}; "
            "start the server with `letter-generator` to authorize",
            "authorization_required",
        )

    try:
        flow = InstalledAppFlow.from_client_secrets_file(settings.credentials_file, SCOPES)
        creds = flow.run_local_server(port=0)
    except Exception as e:
        raise ClientConfigError(f"Unable to retrieve token from web: {str(e)}") from e

    _save_token(settings.token_file, creds)
    return creds


def build_clients(settings: Settings, interactive: bool = False) -> GoogleClients:
    """
    Build the tabular source plus Docs and Drive clients.

    Raises:
        ClientConfigError: If credentials are unusable or a client cannot be built.
    """
    creds = load_credentials(settings, interactive=interactive)

    try:
        docs = build("docs", "v1", credentials=creds, cache_discovery=False)
        drive = build("drive", "v3", credentials=creds, cache_discovery=False)

        if settings.table_source == "workbook":
            table = WorkbookTable()
        else:
            table = GoogleSheetsTable(
                build("sheets", "v4", credentials=creds, cache_discovery=False)
            )
    except Exception as e:
        raise ClientConfigError(f"Unable to build Google API clients: {str(e)}") from e

    logger.info("Google clients ready (table source: %s)", settings.table_source)
    return GoogleClients(table=table, docs=docs, drive=drive)
