from fastapi.testclient import TestClient

from claisen.api import app


def test_get_config_returns_constants_and_species():
    with TestClient(app) as client:
        response = client.get("/config")
        assert response.status_code == 200
        data = response.json()
        assert data["config"]["time_step"] == 0.1
        assert data["config"]["total_particles"] == 200
        assert [s["key"] for s in data["species"]] == ["EtA", "Enol", "Prod"]


def test_reset_returns_initial_frame():
    with TestClient(app) as client:
        response = client.post("/reset")
        assert response.status_code == 200
        assert response.json()["status"] == "idle"

        state = client.get("/state").json()
        assert state["t"] == 0.0
        assert state["concentrations"] == {"EtA": 1.0, "Enol": 0.0, "Prod": 0.0}
        assert state["display"] == {"time": "0.0", "yield": "0.0"}
        assert len(state["canvas"]["particles"]) == 200

        chart = client.get("/chart").json()
        assert chart["labels"] == []


def test_rate_is_locked_while_running():
    with TestClient(app) as client:
        client.post("/reset")
        response = client.post("/rate", json={"value": 0.8})
        assert response.status_code == 200
        assert response.json()["controls"]["rate"] == 0.8

        response = client.post("/start")
        assert response.json()["status"] == "running"
        assert response.json()["controls"]["rate_enabled"] is False

        response = client.post("/rate", json={"value": 1.2})
        assert response.status_code == 409

        response = client.post("/stop")
        assert response.json()["status"] == "stopped"
        assert response.json()["controls"]["rate_enabled"] is True

        client.post("/rate", json={"value": 0.5})
        client.post("/reset")


def test_websocket_sends_snapshot_then_streams_ticks():
    with TestClient(app) as client:
        client.post("/reset")
        with client.websocket_connect("/ws") as websocket:
            first = websocket.receive_json()
            assert first["type"] == "chart"
            second = websocket.receive_json()
            assert second["type"] == "state"
            assert "canvas" in second["payload"]

            websocket.send_json({"type": "bogus"})
            message = websocket.receive_json()
            assert message["type"] == "error"

            websocket.send_json({"type": "start"})
            ticked = False
            for _ in range(50):
                message = websocket.receive_json()
                if message["type"] == "state" and message["payload"]["ticks"] > 0:
                    ticked = True
                    break
            assert ticked

            websocket.send_json({"type": "stop"})
        client.post("/reset")


def test_websocket_set_rate_requires_value():
    with TestClient(app) as client:
        client.post("/reset")
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()
            websocket.receive_json()

            websocket.send_json({"type": "set_rate"})
            message = websocket.receive_json()
            assert message["type"] == "error"
            assert "value" in message["detail"]


def test_websocket_reports_malformed_commands_and_keeps_listening():
    with TestClient(app) as client:
        client.post("/reset")
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()
            websocket.receive_json()

            websocket.send_json({"type": "set_rate", "value": [1]})
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json([1, 2])
            message = websocket.receive_json()
            assert message["type"] == "error"
            assert "JSON object" in message["detail"]

            websocket.send_text("not json")
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"type": "set_rate", "value": 0.7})
            message = websocket.receive_json()
            assert message["type"] == "state"
            assert message["payload"]["controls"]["rate"] == 0.7

        client.post("/rate", json={"value": 0.5})


def test_index_scales_marker_radius_with_canvas():
    with TestClient(app) as client:
        response = client.get("/")
        assert response.status_code == 200
        assert "frame.radius * Math.min(sx, sy)" in response.text
