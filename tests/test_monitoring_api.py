from __future__ import annotations

from datetime import timedelta


def _credentials(container):
    container.settings_service.update_settings({"bot_token": "123:abc", "chat_id": "-100"})


def test_register_clamps_interval_and_runs_first_check(client, container, seed_sensor):
    seed_sensor(1)

    response = client.post("/api/v1/monitoring/register", json={"interval_minutes": 0})

    assert response.status_code == 200
    body = response.get_json()
    assert body["ok"] is True
    assert body["data"]["started"] is True
    assert body["data"]["interval_minutes"] == 1
    assert body["data"]["status"]["last_summary"]["sources"] == ["sensor_1"]
    assert container.settings_service.get_settings().enabled is True


def test_register_upper_clamp_and_default_body(client, seed_sensor):
    seed_sensor(1)
    response = client.post("/api/v1/monitoring/register", json={"interval_minutes": 120})
    assert response.get_json()["data"]["interval_minutes"] == 60

    response = client.post("/api/v1/monitoring/register")
    assert response.status_code == 200
    assert response.get_json()["data"]["interval_minutes"] == 60


def test_register_rejects_non_integer_interval(client):
    response = client.post("/api/v1/monitoring/register", json={"interval_minutes": "soon"})
    assert response.status_code == 400
    body = response.get_json()
    assert body["ok"] is False
    assert body["details"]["errors"][0]["loc"] == ["interval_minutes"]


def test_unregister_is_idempotent(client, container, seed_sensor):
    seed_sensor(1)
    client.post("/api/v1/monitoring/register", json={"interval_minutes": 5})

    for _ in range(2):
        response = client.post("/api/v1/monitoring/unregister")
        assert response.status_code == 200
        assert response.get_json()["data"]["active"] is False
    assert container.settings_service.get_settings().enabled is False


def test_status_reports_scheduler_and_dedup_state(client, container, seed_sensor):
    _credentials(container)
    seed_sensor(1, temperature=35.0)
    client.post("/api/v1/monitoring/check")

    response = client.get("/api/v1/monitoring/status")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["active"] is False
    assert data["interval_minutes"] == 10
    assert data["last_run_at"] is not None
    assert data["notification_state"][0]["source_id"] == "sensor_1"
    assert data["notification_state"][0]["parameter"] == "temperature"


def test_manual_check_sends_alert(client, container, seed_sensor, telegram_session):
    _credentials(container)
    seed_sensor(1, temperature=35.0)
    seed_sensor(2, age=timedelta(hours=2))

    response = client.post("/api/v1/monitoring/check")

    assert response.status_code == 200
    summary = response.get_json()["data"]
    assert summary["sources"] == ["sensor_1", "sensor_2"]
    assert summary["violations"] == 2
    assert summary["notifications_sent"] == 2
    texts = [call.kwargs["json"]["text"] for call in telegram_session.post.call_args_list]
    assert any("TEMPERATURE ALERT" in text for text in texts)
    assert any("SENSOR INACTIVE" in text for text in texts)


def test_manual_check_without_credentials_reports_errors(client, seed_sensor, telegram_session):
    seed_sensor(1, temperature=35.0)
    summary = client.post("/api/v1/monitoring/check").get_json()["data"]
    assert summary["notifications_sent"] == 0
    assert summary["errors"] == ["sensor_1/temperature: delivery failed"]
    telegram_session.post.assert_not_called()


def test_cron_requires_key(client):
    assert client.get("/api/v1/cron/check-environment").status_code == 401
    assert client.get("/api/v1/cron/check-environment?key=wrong").status_code == 401


def test_cron_with_key_runs_check(client, seed_sensor):
    seed_sensor(1)
    response = client.get("/api/v1/cron/check-environment?key=cron-secret")
    assert response.status_code == 200
    assert response.get_json()["data"]["sources"] == ["sensor_1"]

    response = client.get("/api/v1/cron/check-environment", headers={"X-Cron-Key": "cron-secret"})
    assert response.status_code == 200


def test_cron_disabled_without_configured_key(client, container):
    container.config.cron_api_key = ""
    assert client.get("/api/v1/cron/check-environment?key=").status_code == 401


def test_unknown_api_route_is_json_404(client):
    response = client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert response.get_json()["ok"] is False
