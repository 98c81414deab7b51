"""
Shared fixtures for phoneauth-core tests.
"""

import asyncio
from typing import List, Optional, Tuple

import pytest

from phoneauth_core.delivery import DeliveryMode, DeliveryResult, OTPDelivery
from phoneauth_core.otp import ChallengeStatus, InMemoryChallengeStore
from phoneauth_core.providers import SendReceipt, SMSProvider
from phoneauth_core.rate_limit import RateLimiter
from phoneauth_core.verification import SessionGrant


class FakeClock:
    """Controllable Unix clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingDelivery(OTPDelivery):
    """Keeps every delivered code instead of sending it."""

    mode = DeliveryMode.CONSOLE

    def __init__(self, result: Optional[DeliveryResult] = None):
        self.sent: List[Tuple[str, str]] = []
        self._result = result

    async def send(self, phone, code):
        self.sent.append((str(phone), code))
        return self._result or DeliveryResult.ok()

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


class GatedDelivery(OTPDelivery):
    """Blocks inside send until released."""

    mode = DeliveryMode.SMS

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.done = asyncio.Event()
        self.sent: List[Tuple[str, str]] = []

    async def send(self, phone, code):
        self.started.set()
        await self.release.wait()
        self.sent.append((str(phone), code))
        self.done.set()
        return DeliveryResult.ok()


class FakeProvider(SMSProvider):
    """SMS provider that records messages or raises a configured error."""

    name = "fake"

    def __init__(self, error: Optional[Exception] = None, delay: float = 0.0):
        self.error = error
        self.delay = delay
        self.messages: List[Tuple[str, str]] = []
        self.closed = False

    async def send_sms(self, to, body):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.messages.append((to, body))
        return SendReceipt(provider_message_id=f"SM{len(self.messages)}")

    async def close(self):
        self.closed = True


class SpyChallengeStore(InMemoryChallengeStore):
    """In-memory store that counts comparisons."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.verify_calls = 0

    async def verify(self, phone, code) -> ChallengeStatus:
        self.verify_calls += 1
        return await super().verify(phone, code)


class SlowChallengeStore:
    """Store that yields to the event loop mid-comparison and never matches."""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.verify_calls = 0

    async def save(self, phone, code):
        return None

    async def verify(self, phone, code) -> ChallengeStatus:
        self.verify_calls += 1
        await asyncio.sleep(self.delay)
        return ChallengeStatus.INVALID_CODE


class FakeSessionIssuer:
    """Issues sessions; the first sign-in for a phone is a new user."""

    def __init__(self):
        self.known = set()
        self.issued: List[str] = []

    async def issue(self, phone):
        self.issued.append(str(phone))
        is_new = str(phone) not in self.known
        self.known.add(str(phone))
        return SessionGrant(user_id=f"user-{str(phone)[-4:]}", is_new_user=is_new)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)
