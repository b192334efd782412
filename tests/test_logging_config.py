"""
Tests for logging configuration.
"""
import logging


class TestLoggingConfiguration:
    """Test logging setup and configuration."""

    def test_setup_logging_default_level(self, monkeypatch):
        """Test that setup_logging defaults to INFO level."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        from ironing_service.logging_config import setup_logging
        setup_logging()

        logger = logging.getLogger("ironing_service")
        assert logger.level == logging.INFO

    def test_setup_logging_respects_env_var(self, monkeypatch):
        """Test that LOG_LEVEL env var is respected."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        from ironing_service.logging_config import setup_logging
        setup_logging()

        logger = logging.getLogger("ironing_service")
        assert logger.level == logging.WARNING

    def test_setup_logging_explicit_level(self):
        """Test that explicit level parameter works."""
        from ironing_service.logging_config import setup_logging
        setup_logging(level="error")

        logger = logging.getLogger("ironing_service")
        assert logger.level == logging.ERROR

    def test_setup_logging_invalid_level_defaults_to_info(self):
        """Test that invalid level falls back to INFO."""
        from ironing_service.logging_config import setup_logging
        setup_logging(level="INVALID_LEVEL")

        logger = logging.getLogger("ironing_service")
        assert logger.level == logging.INFO

    def test_third_party_noise_reduced(self):
        from ironing_service.logging_config import setup_logging
        setup_logging(level="INFO")

        assert logging.getLogger("twilio").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_repeated_setup_installs_one_handler(self):
        from ironing_service import logging_config
        logging_config.setup_logging()
        logging_config.setup_logging()

        root_handlers = logging.getLogger().handlers
        assert root_handlers.count(logging_config._handler) == 1


class TestRequestIdInLogs:
    """Log records carry the ID of the request that produced them."""

    def test_outside_a_request(self):
        from ironing_service.logging_config import RequestIDFilter

        record = logging.LogRecord("ironing_service", logging.INFO, __file__, 1, "seeding", None, None)
        RequestIDFilter().filter(record)

        assert record.request_id == "-"

    def test_records_tagged_during_request(self, client, auth, place_order, caplog):
        from ironing_service.logging_config import RequestIDFilter

        order_id = place_order()
        caplog.handler.addFilter(RequestIDFilter())

        with caplog.at_level(logging.INFO, logger="ironing_service"):
            client.post(
                f"/api/orders/{order_id}/status",
                json={"status": "CANCELLED"},
                headers={**auth("admin"), "X-Request-ID": "trace-42"},
            )

        transition = [r for r in caplog.records if f"Order {order_id}: PLACED -> CANCELLED" in r.getMessage()]
        assert [r.request_id for r in transition] == ["trace-42"]


class TestNoSensitiveDataInLogs:
    """Test that secrets are not logged at INFO level or higher."""

    def test_tokens_not_logged(self, client, auth, seed, caplog):
        """Bearer tokens never appear in INFO+ logs while serving requests."""
        with caplog.at_level(logging.DEBUG, logger="ironing_service"):
            client.get("/api/orders/user", headers=auth("customer"))

        for record in caplog.records:
            if record.levelno >= logging.INFO:
                assert seed.tokens["customer"] not in record.getMessage()

    def test_transition_is_logged(self, client, auth, place_order, caplog):
        order_id = place_order()

        with caplog.at_level(logging.INFO, logger="ironing_service"):
            client.post(f"/api/orders/{order_id}/status", json={"status": "CANCELLED"}, headers=auth("admin"))

        messages = [r.getMessage() for r in caplog.records]
        assert any(f"Order {order_id}: PLACED -> CANCELLED" in m for m in messages)
