import json
import logging

from jls import LicenseVerifier, config
from jls.logging_config import (
    AuditLogger,
    StructuredFormatter,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)

from signing_helpers import load_vector


def test_structured_formatter_includes_correlation_and_extras():
    set_correlation_id("req-42")
    record = logging.LogRecord("jls.test", logging.WARNING, __file__, 10, "hello %s", ("world",), None)
    record.extra_fields = {"event_type": "TEST", "license_id": "abc"}
    out = json.loads(StructuredFormatter().format(record))
    assert out["message"] == "hello world"
    assert out["level"] == "WARNING"
    assert out["correlation_id"] == "req-42"
    assert out["event_type"] == "TEST"
    assert out["license_id"] == "abc"


def test_set_correlation_id_generates_one():
    generated = set_correlation_id()
    assert generated and get_correlation_id() == generated


def test_audit_events(caplog):
    audit = AuditLogger("jls.audit.test")
    with caplog.at_level(logging.INFO, logger="jls.audit.test"):
        audit.verification_succeeded("0b5b88f5-a264-4f90-8406-50b01d9515c8", "2024-10-01T00:00:00Z")
        audit.security_event("payload_mismatch", severity="high", license_id="x")
    succeeded, security = caplog.records
    assert succeeded.levelno == logging.INFO
    assert succeeded.extra_fields["event_type"] == "VERIFICATION_SUCCEEDED"
    assert security.levelno == logging.ERROR
    assert security.extra_fields["security_event"] == "payload_mismatch"


def test_verifier_logs_each_outcome(caplog):
    document = load_vector("valid_license.json")
    with caplog.at_level(logging.INFO, logger="jls.audit"):
        verifier = LicenseVerifier(load_vector("issuer_rs512.jwk.json"))
        verifier.check(document)
    audit = [r for r in caplog.records if r.name == "jls.audit"]
    assert [r.extra_fields["event_type"] for r in audit] == ["VERIFIER_INITIALIZED", "VERIFICATION_FAILED"]
    assert audit[0].extra_fields["algorithm"] == "RS512"
    failed = audit[-1]
    assert failed.extra_fields["failure"] == "EXPIRED"
    assert failed.extra_fields["license_id"] == "0b5b88f5-a264-4f90-8406-50b01d9515c8"


def test_configure_logging_json_to_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    log_file = tmp_path / "jls.log"
    try:
        configure_logging("debug", json_format=True, log_file=str(log_file))
        logging.getLogger("jls.test").info("written")
        for handler in root.handlers:
            handler.flush()
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "written"
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)


def test_config_flags(monkeypatch):
    monkeypatch.setenv("JLS_DEBUG", "true")
    assert config.is_debug()
    monkeypatch.setenv("JLS_DEBUG", "0")
    assert not config.is_debug()
    monkeypatch.setattr(config, "ENV", "prod")
    assert config.is_production()
    monkeypatch.setattr(config, "LOG_FORMAT", "text")
    assert not config.use_json_logs()


def test_load_public_key_from_configured_path(monkeypatch, tmp_path):
    path = tmp_path / "key.json"
    path.write_text(json.dumps(load_vector("issuer_rs512.jwk.json")), encoding="utf-8")
    monkeypatch.setattr(config, "PUBLIC_KEY_PATH", str(path))
    assert config.load_public_key()["alg"] == "RS512"
