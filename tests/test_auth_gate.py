"""Authentication gate tests: every failure looks the same."""

from datetime import timedelta

import pytest

from taskhub.auth.dependencies import Principal, authenticate
from taskhub.auth.jwt import issue_access_token, issue_refresh_token
from taskhub.errors import Unauthenticated


def test_valid_bearer_token_yields_principal():
    token = issue_access_token(5, "admin")
    principal = authenticate(f"Bearer {token}")
    assert principal == Principal(id=5, role="admin")
    assert principal.is_admin


def test_scheme_is_case_insensitive():
    token = issue_access_token(5, "user")
    assert authenticate(f"bearer {token}").id == 5


@pytest.mark.parametrize(
    "header",
    [
        None,
        "",
        "Bearer",
        "Bearer ",
        "Basic dXNlcjpwYXNz",
        "Bearer garbage.token.value",
        f"Bearer {issue_refresh_token(5)}",
        f"Bearer {issue_access_token(5, 'user', expires_delta=timedelta(seconds=-5))}",
    ],
)
def test_every_failure_is_the_same_unauthenticated(header):
    with pytest.raises(Unauthenticated) as exc_info:
        authenticate(header)
    assert str(exc_info.value) == "Not authorized, invalid or missing token"
