"""Tests for the Cognito user pool client wrapper."""
import pytest
from botocore.exceptions import EndpointConnectionError

from conftest import FakeCognito, client_error

from amplify_ci_harness.identity import CognitoIdentityClient, ProviderError


def test_sign_up_sends_email_attribute(fake_cognito):
    client = CognitoIdentityClient("us-east-1", client=fake_cognito)
    client.sign_up("client-1", "ci-test-x@test.example.com", "CiTest1!abcdefgh", "ci-test-x@test.example.com")

    operation, kwargs = fake_cognito.calls[0]
    assert operation == "sign_up"
    assert kwargs == {
        "ClientId": "client-1",
        "Username": "ci-test-x@test.example.com",
        "Password": "CiTest1!abcdefgh",
        "UserAttributes": [{"Name": "email", "Value": "ci-test-x@test.example.com"}],
    }


def test_admin_confirm_sign_up(fake_cognito):
    client = CognitoIdentityClient("us-east-1", client=fake_cognito)
    client.admin_confirm_sign_up("pool-1", "user@test.example.com")
    assert fake_cognito.calls == [
        ("admin_confirm_sign_up", {"UserPoolId": "pool-1", "Username": "user@test.example.com"}),
    ]


def test_client_error_is_wrapped():
    fake = FakeCognito(failures={"sign_up": client_error("UsernameExistsException", "User already exists")})
    client = CognitoIdentityClient("us-east-1", client=fake)

    with pytest.raises(ProviderError) as exc_info:
        client.sign_up("c", "u", "p", "e")

    err = exc_info.value
    assert err.operation == "sign_up"
    assert err.code == "UsernameExistsException"
    assert err.message == "User already exists"
    assert str(err) == "User already exists"


def test_botocore_error_is_wrapped():
    fake = FakeCognito(failures={
        "admin_confirm_sign_up": EndpointConnectionError(endpoint_url="https://cognito-idp.us-east-1.amazonaws.com"),
    })
    client = CognitoIdentityClient("us-east-1", client=fake)

    with pytest.raises(ProviderError) as exc_info:
        client.admin_confirm_sign_up("pool", "user")
    assert exc_info.value.code is None
    assert "cognito-idp" in exc_info.value.message


def test_sign_in_returns_authentication_result(fake_cognito):
    client = CognitoIdentityClient("us-east-1", client=fake_cognito)
    tokens = client.sign_in("client-1", "user", "pw")

    assert tokens["AccessToken"] == "access-token"
    _, kwargs = fake_cognito.calls[0]
    assert kwargs["AuthFlow"] == "USER_PASSWORD_AUTH"
    assert kwargs["AuthParameters"] == {"USERNAME": "user", "PASSWORD": "pw"}


def test_sign_in_with_challenge_fails():
    class ChallengeCognito(FakeCognito):
        def initiate_auth(self, **kwargs):
            return {"ChallengeName": "NEW_PASSWORD_REQUIRED", "Session": "s"}

    client = CognitoIdentityClient("us-east-1", client=ChallengeCognito())
    with pytest.raises(ProviderError, match="NEW_PASSWORD_REQUIRED"):
        client.sign_in("c", "u", "p")


def test_sign_out_and_delete(fake_cognito):
    client = CognitoIdentityClient("us-east-1", client=fake_cognito)
    client.sign_out("access-token")
    client.admin_delete_user("pool-1", "user")
    assert fake_cognito.calls == [
        ("global_sign_out", {"AccessToken": "access-token"}),
        ("admin_delete_user", {"UserPoolId": "pool-1", "Username": "user"}),
    ]
