import threading
from types import SimpleNamespace

import pytest

from support_directory.core.exceptions import (
    AccountInactive,
    InvalidOrExpiredCode,
    ProviderError,
    RateLimited,
    ServiceUnavailable,
    UnknownPhone,
    ValidationError,
)
from support_directory.integrations.twilio_otp import OTPProviderError
from support_directory.services.otp_challenge_store import InMemoryChallengeStore
from support_directory.services.otp_service import (
    ManagedOTPStrategy,
    OTPVerifier,
    SelfManagedOTPStrategy,
    build_otp_verifier,
    resolve_channel,
)
from support_directory.services.token_service import TokenIssuer

from conftest import FakeMessagingProvider, FakeVerifyProvider

PHONE = "+911234567890"


class FakeAccounts:
    def __init__(self, *accounts):
        self.accounts = {a.phone: a for a in accounts}

    def find_by_phone(self, phone):
        return self.accounts.get(phone)


class Clock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def active_account(phone=PHONE, is_active=True):
    return SimpleNamespace(id=1, phone=phone, is_active=is_active)


def issuer():
    return TokenIssuer(secret="access-secret", phone_secret="phone-secret")


def self_managed(provider=None, clock=None):
    provider = provider or FakeMessagingProvider()
    clock = clock or Clock()
    strategy = SelfManagedOTPStrategy(provider, InMemoryChallengeStore(clock=clock), expiry_minutes=5, otp_length=6, clock=clock)
    return strategy, provider


def test_resolve_channel_defaults_to_sms():
    assert resolve_channel(None) == "sms"
    assert resolve_channel("WhatsApp") == "whatsapp"
    assert resolve_channel("pigeon") == "sms"


def test_self_managed_code_is_accepted_once():
    strategy, provider = self_managed()
    strategy.start(PHONE, "sms")
    code = provider.last_code(PHONE)

    assert len(code) == 6
    assert strategy.check(PHONE, code) is True
    assert strategy.check(PHONE, code) is False


def test_self_managed_wrong_code_consumes_the_challenge():
    strategy, provider = self_managed()
    strategy.start(PHONE, "sms")
    code = provider.last_code(PHONE)
    wrong = "000000" if code != "000000" else "111111"

    assert strategy.check(PHONE, wrong) is False
    assert strategy.check(PHONE, code) is False


def test_self_managed_code_expires():
    clock = Clock()
    strategy, provider = self_managed(clock=clock)
    strategy.start(PHONE, "sms")
    clock.now += 5 * 60 + 1

    assert strategy.check(PHONE, provider.last_code(PHONE)) is False


def test_self_managed_new_start_replaces_old_code():
    strategy, provider = self_managed()
    strategy.start(PHONE, "sms")
    first = provider.last_code(PHONE)
    strategy.start(PHONE, "sms")
    second = provider.last_code(PHONE)

    if first != second:
        assert strategy.check(PHONE, first) is False
    else:
        assert strategy.check(PHONE, second) is True


def test_self_managed_concurrent_checks_succeed_at_most_once():
    strategy, provider = self_managed()
    strategy.start(PHONE, "sms")
    code = provider.last_code(PHONE)

    results = []
    barrier = threading.Barrier(8)

    def attempt():
        barrier.wait()
        results.append(strategy.check(PHONE, code))

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 1


def test_self_managed_voice_channel_is_sent_as_sms():
    strategy, provider = self_managed()
    strategy.start(PHONE, "call")
    assert provider.messages[-1]["channel"] == "sms"

    strategy.start(PHONE, "whatsapp")
    assert provider.messages[-1]["channel"] == "whatsapp"


def test_self_managed_send_failure_discards_challenge():
    strategy, provider = self_managed()
    provider.fail_with = OTPProviderError("Unreachable", 500)

    with pytest.raises(OTPProviderError):
        strategy.start(PHONE, "sms")
    assert strategy.store.take(PHONE) is None


def test_managed_strategy_delegates_to_provider():
    provider = FakeVerifyProvider()
    strategy = ManagedOTPStrategy(provider)
    strategy.start(PHONE, "whatsapp")

    assert provider.challenges == [(PHONE, "whatsapp")]
    assert strategy.check(PHONE, "999999") is False
    assert strategy.check(PHONE, "123456") is True
    # provider reports the finished challenge as missing
    assert strategy.check(PHONE, "123456") is False


def test_build_otp_verifier_prefers_managed_service():
    assert build_otp_verifier(FakeVerifyProvider(), issuer(), FakeAccounts()).strategy.name == "managed"
    verifier = build_otp_verifier(FakeMessagingProvider(), issuer(), FakeAccounts(), store=InMemoryChallengeStore())
    assert verifier.strategy.name == "self_managed"


def test_verifier_start_requires_phone():
    strategy, _ = self_managed()
    with pytest.raises(ValidationError):
        OTPVerifier(strategy, issuer(), FakeAccounts()).start("  ")


def test_verifier_start_rejects_unknown_phone():
    strategy, provider = self_managed()
    with pytest.raises(UnknownPhone):
        OTPVerifier(strategy, issuer(), FakeAccounts()).start(PHONE)
    assert provider.messages == []


def test_verifier_start_rejects_inactive_account():
    strategy, _ = self_managed()
    with pytest.raises(AccountInactive):
        OTPVerifier(strategy, issuer(), FakeAccounts(active_account(is_active=False))).start(PHONE)


def test_verifier_start_needs_configured_provider():
    strategy, _ = self_managed(provider=FakeMessagingProvider(messaging_configured=False))
    with pytest.raises(ServiceUnavailable):
        OTPVerifier(strategy, issuer(), FakeAccounts(active_account())).start(PHONE)


def test_verifier_start_maps_provider_rate_limit():
    strategy, provider = self_managed()
    provider.fail_with = OTPProviderError("Too many requests", 429)
    with pytest.raises(RateLimited):
        OTPVerifier(strategy, issuer(), FakeAccounts(active_account())).start(PHONE)


def test_verifier_start_maps_other_provider_errors():
    strategy, provider = self_managed()
    provider.fail_with = OTPProviderError("Invalid parameter", 400)
    with pytest.raises(ProviderError) as error:
        OTPVerifier(strategy, issuer(), FakeAccounts(active_account())).start(PHONE)
    assert error.value.status_code == 400


def test_verifier_check_issues_phone_credential():
    strategy, provider = self_managed()
    token_issuer = issuer()
    verifier = OTPVerifier(strategy, token_issuer, FakeAccounts(active_account()))

    verifier.start("+91 1234567890")
    result = verifier.check(PHONE, provider.last_code(PHONE))

    assert token_issuer.read_phone_credential(result["otp_token"]) == PHONE
    assert result["expires_in"] == token_issuer.phone_credential_lifetime


def test_verifier_check_rejects_wrong_code():
    strategy, _ = self_managed()
    verifier = OTPVerifier(strategy, issuer(), FakeAccounts(active_account()))
    verifier.start(PHONE)
    with pytest.raises(InvalidOrExpiredCode):
        verifier.check(PHONE, "not-the-code")


def test_verifier_check_requires_phone_and_code():
    strategy, _ = self_managed()
    with pytest.raises(ValidationError):
        OTPVerifier(strategy, issuer(), FakeAccounts()).check(PHONE, "")
