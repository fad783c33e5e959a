"""
Unit tests for configuration management.
"""

import pytest
from unittest.mock import patch
import os


def test_settings_loads_from_environment():
    """Test that settings can be loaded from environment variables."""
    with patch.dict(os.environ, {
        'SUPABASE_URL': 'https://project.supabase.co',
        'SUPABASE_ANON_KEY': 'test_key',
        'ERRORS_TABLE': 'system_errors',
        'IMAGE_BUCKET': 'screenshots',
        'LOG_LEVEL': 'DEBUG',
        'HTTP_TIMEOUT_SECONDS': '5',
        'EXPORT_DATE_FORMAT': '%d/%m/%Y',
    }):
        from app.config import Settings
        settings = Settings()

        assert settings.supabase_url == 'https://project.supabase.co'
        assert settings.supabase_anon_key == 'test_key'
        assert settings.errors_table == 'system_errors'
        assert settings.image_bucket == 'screenshots'
        assert settings.log_level == 'DEBUG'
        assert settings.http_timeout_seconds == 5
        assert settings.export_date_format == '%d/%m/%Y'


def test_settings_has_default_values():
    """Test that settings have appropriate default values."""
    with patch.dict(os.environ, {
        'SUPABASE_URL': 'https://project.supabase.co',
        'SUPABASE_ANON_KEY': 'test_key',
    }):
        from app.config import Settings
        settings = Settings()

        assert settings.errors_table == 'errors'
        assert settings.profiles_table == 'profiles'
        assert settings.image_bucket == 'error-images'
        assert settings.log_level == 'INFO'
        assert settings.http_timeout_seconds == 30
        assert settings.cors_origins == ['*']


def test_settings_requires_backend_url():
    """Test that the backend URL is mandatory."""
    from pydantic import ValidationError
    from app.config import Settings

    env = {k: v for k, v in os.environ.items() if k not in ('SUPABASE_URL', 'SUPABASE_ANON_KEY')}
    with patch.dict(os.environ, env, clear=True):
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
