from types import SimpleNamespace

from support_directory.main import app
from support_directory.middlewares.rate_limit import RateLimiter, RateLimitRule, client_address


class Clock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def login_rule(limit=3, period=60):
    return RateLimitRule("login", "POST", "/auth/login", limit, period, "Too many requests from this IP, please try again later.")


def test_login_is_throttled_per_ip(client, monkeypatch):
    monkeypatch.setattr(app.state.rate_limiter, "rules", [login_rule()])
    body = {"identifier": "nobody", "password": "wrong-password"}

    for _ in range(3):
        response = client.post("/auth/login", json=body)
        assert response.status_code == 401
    assert response.headers["ratelimit-remaining"] == "0"

    blocked = client.post("/auth/login", json=body)
    assert blocked.status_code == 429
    assert blocked.json() == {"success": False, "message": "Too many requests from this IP, please try again later."}
    assert int(blocked.headers["retry-after"]) > 0

    other_ip = client.post("/auth/login", json=body, headers={"x-forwarded-for": "10.0.0.9"})
    assert other_ip.status_code == 401


def test_unlisted_routes_are_not_counted(client, monkeypatch):
    monkeypatch.setattr(app.state.rate_limiter, "rules", [login_rule(limit=1)])

    for _ in range(3):
        response = client.post("/auth/forgot-password", json={"email": "someone@example.com"})
        assert response.status_code == 200
        assert "ratelimit-limit" not in response.headers


def test_default_rules_cover_credential_and_redirect_routes():
    limiter = RateLimiter()

    assert limiter.rule_for("POST", "/auth/login").name == "login"
    assert limiter.rule_for("POST", "/auth/reset-password").name == "reset_password"
    assert limiter.rule_for("POST", "/admins").name == "create_sub_admin"
    assert limiter.rule_for("GET", "/admins") is None
    assert limiter.rule_for("GET", "/search/redirect").limit == 60


def test_window_resets_after_period():
    clock = Clock()
    rule = login_rule(limit=2, period=60)
    limiter = RateLimiter([rule], clock=clock)

    assert limiter.hit(rule, "1.1.1.1")[0] is True
    assert limiter.hit(rule, "1.1.1.1")[0] is True
    allowed, remaining, reset_in = limiter.hit(rule, "1.1.1.1")
    assert (allowed, remaining, reset_in) == (False, 0, 60)

    clock.now += 61
    assert limiter.hit(rule, "1.1.1.1") == (True, 1, 60)


def test_closed_windows_are_swept():
    clock = Clock()
    rule = login_rule(limit=5, period=60)
    limiter = RateLimiter([rule], clock=clock)
    for n in range(100):
        limiter.hit(rule, f"10.0.0.{n}")
    assert len(limiter._windows) == 100

    clock.now += 120
    limiter.hit(rule, "10.0.1.1")
    assert list(limiter._windows) == ["login:10.0.1.1"]


def test_client_address_prefers_forwarded_header():
    forwarded = SimpleNamespace(headers={"x-forwarded-for": "203.0.113.5, 10.0.0.1"}, client=SimpleNamespace(host="10.0.0.1"))
    direct = SimpleNamespace(headers={}, client=SimpleNamespace(host="10.0.0.2"))

    assert client_address(forwarded) == "203.0.113.5"
    assert client_address(direct) == "10.0.0.2"
