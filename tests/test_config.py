"""Settings validation tests."""

import pytest
from pydantic import ValidationError

from taskhub.config import Settings


def test_development_defaults_are_accepted():
    s = Settings(environment="development")
    assert s.access_token_expire_days == 7
    assert s.refresh_token_expire_days == 30
    assert s.bcrypt_rounds == 10
    assert s.jwt_secret != s.jwt_refresh_secret


def test_low_bcrypt_cost_rejected_everywhere():
    with pytest.raises(ValidationError):
        Settings(environment="development", bcrypt_rounds=4)


def test_production_requires_real_secrets():
    with pytest.raises(ValidationError):
        Settings(environment="production")


def test_production_requires_distinct_secrets():
    with pytest.raises(ValidationError):
        Settings(environment="production", jwt_secret="s3cret", jwt_refresh_secret="s3cret")


def test_production_with_distinct_secrets():
    s = Settings(environment="production", jwt_secret="a" * 32, jwt_refresh_secret="b" * 32)
    assert s.environment == "production"
