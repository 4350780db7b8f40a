"""Audit configuration tests."""

import pytest

from link_audit.config import AuditConfig


def test_for_page_splits_origin_and_path():
    config = AuditConfig.for_page("https://www.example-travel.com/iceland/")
    assert config.origin == "https://www.example-travel.com"
    assert config.page_path == "/iceland/"
    assert config.current_host == "www.example-travel.com"
    assert config.tours_url == "https://www.example-travel.com/iceland/tours"
    assert config.confirmed is False


def test_for_page_rejects_relative_urls():
    with pytest.raises(ValueError):
        AuditConfig.for_page("/iceland")


def test_absolute_url():
    config = AuditConfig(origin="https://www.example-travel.com/")
    assert config.absolute_url("/iceland") == "https://www.example-travel.com/iceland"
    assert config.absolute_url("iceland") == "https://www.example-travel.com/iceland"
    assert config.absolute_url("https://other.org/x") == "https://other.org/x"


def test_confirmation_returns_a_new_config():
    config = AuditConfig()
    assert config.with_confirmation().confirmed is True
    assert config.confirmed is False


def test_from_env(monkeypatch):
    monkeypatch.setenv("LINK_AUDIT_PAGE_URL", "https://www.example-travel.com/iceland")
    monkeypatch.setenv("LINK_AUDIT_MAX_CONCURRENT", "5")
    monkeypatch.setenv("LINK_AUDIT_RETRY_DELAY", "2.5")
    monkeypatch.setenv("LINK_AUDIT_HEADLESS", "false")

    config = AuditConfig.from_env()
    assert config.page_path == "/iceland"
    assert config.max_concurrent == 5
    assert config.retry_delay == 2.5
    assert config.headless is False
    assert config.max_retries == 3


def test_from_env_without_overrides(monkeypatch):
    for var in ("LINK_AUDIT_PAGE_URL", "LINK_AUDIT_MAX_CONCURRENT", "LINK_AUDIT_MAX_RETRIES",
                "LINK_AUDIT_RETRY_DELAY", "LINK_AUDIT_SETTLE_DELAY", "LINK_AUDIT_CRUISE_TIMEOUT",
                "LINK_AUDIT_HEADLESS"):
        monkeypatch.delenv(var, raising=False)
    assert AuditConfig.from_env() == AuditConfig()
