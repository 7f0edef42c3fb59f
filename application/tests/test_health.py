from support_directory.routes import health


def test_health_reports_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "ok"
    assert body["otpStrategy"] == "self_managed"


def test_health_degraded_when_database_unreachable(client, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def unreachable():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(health, "check_database", unreachable)
    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
