"""Downstream lead sinks: Google Sheets ledger and Resend confirmation email.

Both are presence-gated: missing configuration yields an unconfigured handle,
never an error. Delivery failures raise; the subscription service decides what
to do with them.
"""
import json
import logging
from datetime import datetime, timezone
from typing import NamedTuple, Protocol
from urllib.parse import quote

import httpx
import requests
from fastapi.concurrency import run_in_threadpool
from fastapi.templating import Jinja2Templates
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account
from requests.adapters import HTTPAdapter

from app.core.config import APP_DIR, Settings

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
RESEND_API = "https://api.resend.com/emails"

templates = Jinja2Templates(directory=str(APP_DIR / "templates"))


class LedgerRow(NamedTuple):
    timestamp: str
    name: str
    email: str

    @classmethod
    def now(cls, name: str, email: str) -> "LedgerRow":
        return cls(datetime.now(timezone.utc).isoformat(), name, email)


class LedgerSink(Protocol):
    configured: bool

    async def append(self, row: LedgerRow) -> None: ...


class NotificationSink(Protocol):
    configured: bool

    async def send_confirmation(self, name: str, email: str) -> None: ...


# ---------- Google Sheets ----------

class TimeoutHTTPAdapter(HTTPAdapter):
    """Forces one timeout on every request; google-auth would otherwise wait up to 120s."""

    def __init__(self, timeout: float, *args, **kwargs):
        self.timeout = timeout
        super().__init__(*args, **kwargs)

    def send(self, request, **kwargs):
        kwargs["timeout"] = self.timeout
        return super().send(request, **kwargs)


def auth_request(timeout: float) -> GoogleAuthRequest:
    """google-auth transport whose token refresh gives up after timeout seconds."""
    session = requests.Session()
    adapter = TimeoutHTTPAdapter(timeout)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return GoogleAuthRequest(session)


class GoogleSheetsLedger:
    """Appends (timestamp, name, email) rows to one sheet range."""

    def __init__(
        self,
        sheet_id: str | None,
        credentials: service_account.Credentials | None,
        sheet_range: str = "Sheet1!A:C",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.sheet_id = sheet_id
        self.credentials = credentials
        self.sheet_range = sheet_range
        self.timeout = timeout
        self.transport = transport
        self.configured = bool(sheet_id and credentials is not None)
        self.auth_request = auth_request(timeout)

    async def _access_token(self) -> str:
        if not self.credentials.valid:
            # google-auth refreshes synchronously; the session caps it at self.timeout
            await run_in_threadpool(self.credentials.refresh, self.auth_request)
        return self.credentials.token

    async def append(self, row: LedgerRow) -> None:
        if not self.configured:
            return
        token = await self._access_token()
        url = f"{SHEETS_API}/{self.sheet_id}/values/{quote(self.sheet_range, safe='')}:append"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                url,
                params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
                headers={"Authorization": f"Bearer {token}"},
                json={"values": [list(row)]},
            )
            response.raise_for_status()
        logger.info("Google Sheets: row appended for %s", row.email)


def load_google_credentials(settings: Settings) -> service_account.Credentials | None:
    """Service account credentials from GOOGLE_CREDENTIALS JSON or email + private key."""
    info = None
    if settings.google_credentials:
        try:
            info = json.loads(settings.google_credentials)
        except ValueError:
            logger.error("GOOGLE_CREDENTIALS is not valid JSON; ledger sink disabled")
            return None
    elif settings.google_service_account_email and settings.google_private_key:
        info = {
            "type": "service_account",
            "client_email": settings.google_service_account_email,
            "private_key": settings.google_private_key.replace("\\n", "\n"),
            "token_uri": GOOGLE_TOKEN_URI,
        }
    if info is None:
        return None
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
    except (ValueError, KeyError) as e:
        logger.error("Invalid Google service account credentials; ledger sink disabled: %s", e)
        return None


def build_ledger(settings: Settings) -> GoogleSheetsLedger:
    credentials = load_google_credentials(settings) if settings.google_sheet_id else None
    return GoogleSheetsLedger(
        settings.google_sheet_id,
        credentials,
        sheet_range=settings.google_sheet_range,
        timeout=settings.sink_timeout_seconds,
    )


# ---------- Resend ----------

def render_confirmation_html(name: str, threads_url: str) -> str:
    return templates.get_template("email/confirmation.html").render(name=name, threads_url=threads_url)


class ResendNotifier:
    """Sends the subscription confirmation through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str | None,
        from_email: str | None,
        display_name: str = "CEO멘탈코치",
        subject: str = "신태순 작가 신간 출간 알림 신청 완료",
        threads_url: str = "",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.display_name = display_name
        self.subject = subject
        self.threads_url = threads_url
        self.timeout = timeout
        self.transport = transport
        self.configured = bool(api_key and from_email)

    def build_payload(self, name: str, email: str) -> dict:
        return {
            "from": f"{self.display_name} <{self.from_email}>",
            "to": [email],
            "subject": self.subject,
            "html": render_confirmation_html(name, self.threads_url),
        }

    async def send_confirmation(self, name: str, email: str) -> None:
        if not self.configured:
            return
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                RESEND_API,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=self.build_payload(name, email),
            )
            response.raise_for_status()
        logger.info("Resend: confirmation sent to %s", email)


def build_notifier(settings: Settings) -> ResendNotifier:
    return ResendNotifier(
        settings.resend_api_key,
        settings.resend_from_email,
        display_name=settings.sender_display_name,
        subject=settings.confirmation_subject,
        threads_url=settings.threads_url,
        timeout=settings.sink_timeout_seconds,
    )
