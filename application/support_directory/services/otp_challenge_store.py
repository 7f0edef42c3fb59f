"""
Keyed stores for self-managed OTP challenges.

Every operation on a phone is serialized: `take` removes the challenge in the
same step that reads it, so two concurrent checks can never both see it.
"""
import math
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Callable, Optional

from support_directory.connections.redis_wrapper import RedisJSONWrapper
from support_directory.logging.utils import get_app_logger
from support_directory.config.settings import DirectoryConfigs

logger = get_app_logger(__name__)
configs = DirectoryConfigs()


@dataclass(frozen=True)
class OTPChallenge:
    code_hash: str
    expires_at: float


class ChallengeStore(ABC):
    @abstractmethod
    def put(self, phone: str, challenge: OTPChallenge) -> None:
        """Store the challenge, replacing any earlier one for the phone."""

    @abstractmethod
    def take(self, phone: str) -> Optional[OTPChallenge]:
        """Atomically read and remove the challenge."""

    @abstractmethod
    def discard(self, phone: str, challenge: OTPChallenge) -> bool:
        """Remove the challenge only if it is still the stored one."""


class _PhoneLock:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


class InMemoryChallengeStore(ChallengeStore):
    """
    Process-local store. A phone's lock lives only while someone holds or
    waits on it, and expired challenges are swept on `put`.
    """

    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0):
        self._challenges: dict[str, OTPChallenge] = {}
        self._locks: dict[str, _PhoneLock] = {}
        self._guard = threading.Lock()
        self.clock = clock
        self.sweep_interval = sweep_interval
        self._next_sweep = 0.0

    @contextmanager
    def _locked(self, phone: str):
        with self._guard:
            entry = self._locks.get(phone)
            if entry is None:
                entry = self._locks[phone] = _PhoneLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[phone]

    def _sweep(self):
        now = self.clock()
        if now < self._next_sweep:
            return
        self._next_sweep = now + self.sweep_interval
        expired = [(p, c) for p, c in self._challenges.copy().items() if c.expires_at < now]
        for phone, challenge in expired:
            self.discard(phone, challenge)
        if expired:
            logger.info(f"otp_challenges_swept | count={len(expired)}")

    def put(self, phone: str, challenge: OTPChallenge) -> None:
        self._sweep()
        with self._locked(phone):
            self._challenges[phone] = challenge

    def take(self, phone: str) -> Optional[OTPChallenge]:
        with self._locked(phone):
            return self._challenges.pop(phone, None)

    def discard(self, phone: str, challenge: OTPChallenge) -> bool:
        with self._locked(phone):
            if self._challenges.get(phone) == challenge:
                del self._challenges[phone]
                return True
            return False


class RedisChallengeStore(ChallengeStore):
    def __init__(self, redis_wrapper: Optional[RedisJSONWrapper] = None, prefix: Optional[str] = None):
        self.redis = redis_wrapper or RedisJSONWrapper(database=configs.REDIS_CACHE_DB)
        self.prefix = prefix if prefix is not None else configs.OTP_CACHE_PREFIX

    def _key(self, phone: str) -> str:
        return f"{self.prefix}{phone}"

    def put(self, phone: str, challenge: OTPChallenge) -> None:
        ttl = max(1, math.ceil(challenge.expires_at - time.time()))
        self.redis.set_with_ttl(self._key(phone), asdict(challenge), ttl)

    def take(self, phone: str) -> Optional[OTPChallenge]:
        data = self.redis.get_and_delete(self._key(phone))
        if not data:
            return None
        return OTPChallenge(code_hash=data["code_hash"], expires_at=float(data["expires_at"]))

    def discard(self, phone: str, challenge: OTPChallenge) -> bool:
        return self.redis.delete_if_equals(self._key(phone), asdict(challenge))


def build_challenge_store(backend: Optional[str] = None) -> ChallengeStore:
    backend = (backend or configs.OTP_CACHE_BACKEND).lower()
    if backend == "redis":
        store = RedisChallengeStore()
        if not store.redis.connected:
            raise RuntimeError("OTP_CACHE_BACKEND is redis but Redis is unreachable")
        logger.info("otp_challenge_store | backend=redis")
        return store
    logger.info("otp_challenge_store | backend=memory")
    return InMemoryChallengeStore()
