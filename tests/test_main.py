import uvicorn

from claisen import __main__ as entry


def test_main_serves_the_api_app(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    entry.main(["--port", "9001"])

    assert calls == [("claisen.api:app", {"host": "127.0.0.1", "port": 9001, "reload": False})]
