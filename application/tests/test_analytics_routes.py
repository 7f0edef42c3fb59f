from support_directory.repository.visit_logs import VisitLogRepository

from conftest import create_client_account


def test_visit_logs_join_client_details(client, sub_admin):
    create_client_account(client, sub_admin["headers"], user_id="CL1", name="Alice")
    visits = VisitLogRepository()
    visits.append("CL1", "https://wa.link/root")
    visits.append("GHOST", "https://wa.link/default")

    data = client.get("/analytics/visit-logs", headers=sub_admin["headers"]).json()["data"]

    assert data["pagination"]["limit"] == 50
    by_user = {item["userId"]: item for item in data["items"]}
    assert by_user["CL1"]["clientName"] == "Alice"
    assert by_user["CL1"]["branchName"] == "Root Branch"
    assert by_user["GHOST"]["clientName"] == "GHOST"
    assert by_user["GHOST"]["branchName"] == "Unknown Branch"


def test_visit_logs_filter_by_user(client, root_headers):
    visits = VisitLogRepository()
    visits.append("CL1", "https://wa.link/a")
    visits.append("CL2", "https://wa.link/b")

    data = client.get("/analytics/visit-logs", params={"userId": "cl2"}, headers=root_headers).json()["data"]
    assert [item["userId"] for item in data["items"]] == ["CL2"]


def test_visit_logs_limit_is_capped(client, root_headers):
    assert client.get("/analytics/visit-logs", params={"limit": 201}, headers=root_headers).status_code == 400
    assert client.get("/analytics/visit-logs", params={"limit": 200}, headers=root_headers).status_code == 200


def test_realtime_stats_count_visits(client, root_headers):
    visits = VisitLogRepository()
    for user_id in ("CL1", "CL1", "CL2"):
        visits.append(user_id, "https://wa.link/root")

    data = client.get("/analytics/realtime-stats", headers=root_headers).json()["data"]

    assert data["today"] == 3
    assert data["total"] == 3
    assert len(data["recentVisits"]) == 3


def test_analytics_requires_admin(client):
    assert client.get("/analytics/realtime-stats").status_code == 401
