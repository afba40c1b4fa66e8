"""Settings parsing and validation."""

import pytest
from pydantic import ValidationError

from fleetgate.core.config import PreferredDeviceAuth, Settings


class TestPreferredDeviceAuth:
    """PREFERRED_DEVICE_AUTH is free text mapped onto three modes."""

    def test_default_is_false(self):
        assert Settings().preferred_device_auth == PreferredDeviceAuth.FALSE

    @pytest.mark.parametrize("raw, expected", [
        ("true", PreferredDeviceAuth.TRUE),
        ("TRUE", PreferredDeviceAuth.TRUE),
        (" Only ", PreferredDeviceAuth.ONLY),
        ("false", PreferredDeviceAuth.FALSE),
        ("", PreferredDeviceAuth.FALSE),
        ("maybe", PreferredDeviceAuth.FALSE),
        (True, PreferredDeviceAuth.TRUE),
        (False, PreferredDeviceAuth.FALSE),
    ])
    def test_parsing(self, raw, expected):
        assert Settings(preferred_device_auth=raw).preferred_device_auth == expected

    def test_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("PREFERRED_DEVICE_AUTH", "only")
        assert Settings().preferred_device_auth == PreferredDeviceAuth.ONLY


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.default_device_authorization is True
        assert s.device_group_all_title == "All"
        assert s.audit_retention_days == 365

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_invalid_log_format_rejected(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_settings_are_immutable(self):
        s = Settings()
        with pytest.raises(ValidationError):
            s.preferred_device_auth = PreferredDeviceAuth.ONLY
