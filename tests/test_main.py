import logging

from fastapi.testclient import TestClient

from chillfeed import main
from chillfeed.services import providers


def test_configure_logging_is_idempotent():
    try:
        assert main.configure_logging("debug") == logging.DEBUG
        assert main.configure_logging("DEBUG") == logging.DEBUG

        handlers = [h for h in main.logger.handlers if getattr(h, "_chillfeed", False)]
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG
        assert main.logger.level == logging.DEBUG
        assert not main.logger.propagate
    finally:
        main.configure_logging("INFO")


def test_unknown_log_level_falls_back_to_info():
    assert main.configure_logging("chatty") == logging.INFO
    assert main.logger.level == logging.INFO


def test_shutdown_closes_backend_client(monkeypatch):
    monkeypatch.setenv("CHILLFEED_BACKEND", "github")
    monkeypatch.setenv("GITHUB_TOKEN", "t0ken")
    monkeypatch.setenv("GITHUB_OWNER", "alice")
    monkeypatch.setenv("GITHUB_REPO", "chillfeed-data")
    monkeypatch.setenv("CHILLFEED_SWEEP_INTERVAL_SECONDS", "0")

    with TestClient(main.create_app()):
        providers.get_collections()
        backend = providers._BACKEND
        assert backend is not None
        assert not backend._client.is_closed

    assert backend._client.is_closed
    assert providers._BACKEND is None
    assert providers._COLLECTIONS is None


def test_close_providers_without_backend_is_noop():
    providers.close_providers()
    providers.close_providers()
    assert providers._BACKEND is None
