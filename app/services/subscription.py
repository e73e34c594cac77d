"""Lead capture: validate name/email, then hand the lead to the sinks best-effort.

A valid submission always succeeds for the visitor; ledger/email failures are
logged and swallowed.
"""
import asyncio
import logging
from typing import Awaitable, Callable

from app.core.errors import SinkError, ValidationError
from app.schemas.subscription import SubscriptionRequestSchema, SubscriptionResultSchema
from app.services.sinks import LedgerRow, LedgerSink, NotificationSink

logger = logging.getLogger(__name__)

NAME_REQUIRED = "name required"
INVALID_EMAIL = "invalid email"

NAME_REQUIRED_MESSAGE = "이름을 입력해주세요."
INVALID_EMAIL_MESSAGE = "유효한 이메일을 입력해주세요."
SUCCESS_MESSAGE = "출간 알림 신청이 완료되었습니다!"
TEST_MODE_MESSAGE = "📧 이메일이 등록되었습니다. (테스트 모드: API 키를 설정하면 실제 이메일이 발송됩니다)"
INTERNAL_ERROR_MESSAGE = "서버 오류가 발생했습니다."


def validate_subscription(name: str | None, email: str | None) -> SubscriptionRequestSchema:
    """Ordered checks, first failure wins."""
    if not name or not name.strip():
        raise ValidationError(NAME_REQUIRED, NAME_REQUIRED_MESSAGE)
    if not email or "@" not in email:
        raise ValidationError(INVALID_EMAIL, INVALID_EMAIL_MESSAGE)
    return SubscriptionRequestSchema(name=name.strip(), email=email.strip())


class SubscriptionService:
    def __init__(self, ledger: LedgerSink, notifier: NotificationSink, timeout: float = 5.0):
        self.ledger = ledger
        self.notifier = notifier
        self.timeout = timeout

    @property
    def test_mode(self) -> bool:
        return not self.ledger.configured and not self.notifier.configured

    async def accept(self, request: SubscriptionRequestSchema) -> SubscriptionResultSchema:
        """Fan out an already validated lead. Never fails because of a sink."""
        jobs = []
        if self.ledger.configured:
            row = LedgerRow.now(request.name, request.email)
            jobs.append(self._deliver("ledger", lambda: self.ledger.append(row)))
        if self.notifier.configured:
            jobs.append(self._deliver("email", lambda: self.notifier.send_confirmation(request.name, request.email)))
        await asyncio.gather(*jobs)

        if self.test_mode:
            logger.info("Test mode: lead %s (%s) accepted, no sinks configured", request.name, request.email)
            return SubscriptionResultSchema(success=True, message=TEST_MODE_MESSAGE)
        return SubscriptionResultSchema(success=True, message=SUCCESS_MESSAGE)

    async def submit(self, name: str | None, email: str | None) -> SubscriptionResultSchema:
        try:
            request = validate_subscription(name, email)
            return await self.accept(request)
        except ValidationError as e:
            return SubscriptionResultSchema(success=False, error=e.user_message)
        except Exception:
            logger.exception("Subscription failed")
            return SubscriptionResultSchema(success=False, error=INTERNAL_ERROR_MESSAGE)

    async def _deliver(self, sink: str, call: Callable[[], Awaitable[None]]) -> bool:
        try:
            await asyncio.wait_for(call(), timeout=self.timeout)
            return True
        except Exception as e:
            err = SinkError(sink, e)
            logger.error("%s", err, exc_info=not isinstance(e, asyncio.TimeoutError))
            return False
