"""
Cognito User Pool Client
Handles the user-pool operations the harness needs: registration,
administrative confirmation, password sign-in, sign-out and deletion.
"""
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Exception raised when the identity provider rejects an operation"""

    def __init__(self, operation: str, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.message = message
        self.code = code


class CognitoIdentityClient:
    """Client for the Cognito Identity Provider API"""

    def __init__(self, region: str, client: Any = None):
        self.region = region
        self._client = client or boto3.client("cognito-idp", region_name=region)

    def _call(self, operation: str, **params) -> Dict[str, Any]:
        """Invoke a cognito-idp operation and normalize errors"""
        try:
            return getattr(self._client, operation)(**params)
        except ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code")
            message = error.get("Message") or str(e)
            logger.debug(f"{operation} rejected: {code}: {message}")
            raise ProviderError(operation, message, code) from e
        except BotoCoreError as e:
            raise ProviderError(operation, str(e)) from e

    def sign_up(self, client_id: str, username: str, password: str, email: str) -> Dict[str, Any]:
        """Register a user through the public self-registration API"""
        return self._call(
            "sign_up",
            ClientId=client_id,
            Username=username,
            Password=password,
            UserAttributes=[{"Name": "email", "Value": email}],
        )

    def admin_confirm_sign_up(self, user_pool_id: str, username: str) -> Dict[str, Any]:
        """Confirm a registered user without the email verification code"""
        return self._call("admin_confirm_sign_up", UserPoolId=user_pool_id, Username=username)

    def sign_in(self, client_id: str, username: str, password: str) -> Dict[str, Any]:
        """
        Authenticate with USER_PASSWORD_AUTH.

        Returns:
            The AuthenticationResult dict (IdToken, AccessToken, RefreshToken, ...)
        """
        response = self._call(
            "initiate_auth",
            ClientId=client_id,
            AuthFlow="USER_PASSWORD_AUTH",
            AuthParameters={"USERNAME": username, "PASSWORD": password},
        )
        result = response.get("AuthenticationResult")
        if not result:
            challenge = response.get("ChallengeName", "unknown")
            raise ProviderError("initiate_auth", f"Sign-in requires unsupported challenge: {challenge}", challenge)
        return result

    def sign_out(self, access_token: str) -> None:
        """Revoke all tokens issued for the signed-in user"""
        self._call("global_sign_out", AccessToken=access_token)

    def admin_delete_user(self, user_pool_id: str, username: str) -> None:
        """Remove a user from the pool"""
        self._call("admin_delete_user", UserPoolId=user_pool_id, Username=username)
