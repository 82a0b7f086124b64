from __future__ import annotations

import pytest

from config import get_settings_module
from src.class_attendance.class_attendance.container import build_container
from src.class_attendance.class_attendance.core.exceptions import ValidationError


def test_memory_backend_wires_services():
    c = build_container(store_backend="memory", window_minutes=10)

    assert c.memory_db is not None
    assert c.lifecycle is not None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"store_backend": "memory", "window_minutes": 0},
        {"store_backend": "memory", "late_threshold_minutes": -5},
        {"store_backend": "memory", "window_minutes": "abc"},
        {"store_backend": "redis"},
        {"store_backend": "mysql", "db_config": None},
    ],
)
def test_bad_configuration_is_rejected(kwargs):
    with pytest.raises(ValidationError):
        build_container(**kwargs)


@pytest.mark.parametrize(
    "env, module",
    [("production", "config.production"), ("test", "config.testing"), ("whatever", "config.development")],
)
def test_settings_module_follows_app_env(monkeypatch, env, module):
    monkeypatch.setenv("APP_ENV", env)

    assert get_settings_module() == module
