"""
Test user provisioning.

Creates a throwaway user in the Cognito user pool of the backend under test:

1. Validate the provider configuration (no network call if it is incomplete)
2. SignUp with freshly generated credentials (email is the username)
3. AdminConfirmSignUp to skip the email verification step
4. Return the credentials for the authenticated test flows

Any failure is fatal for the run. Nothing is retried, and a user that was
registered but could not be confirmed is left in the pool.
"""
import logging
from typing import Optional

from .config import ConfigurationError, ProviderConfig
from .credentials import CredentialSet, generate_credentials
from .identity import CognitoIdentityClient, ProviderError

logger = logging.getLogger(__name__)

FAILURE_MARKER = "❌ Failed to create test user:"


def create_test_user(
    config: ProviderConfig,
    identity_client: Optional[CognitoIdentityClient] = None,
) -> CredentialSet:
    """
    Provision and confirm a new test user.

    Args:
        config: User pool coordinates
        identity_client: Client to use; created for ``config.region`` if omitted

    Returns:
        CredentialSet whose username is the generated email

    Raises:
        ConfigurationError: if a required configuration field is missing
        ProviderError: if SignUp or AdminConfirmSignUp is rejected
    """
    try:
        config.validate()
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        raise

    credentials = generate_credentials()
    logger.info(f"🔑 Creating test user: {credentials.email}")

    client = identity_client or CognitoIdentityClient(config.region)

    try:
        client.sign_up(
            client_id=config.client_id,
            username=credentials.username,
            password=credentials.password,
            email=credentials.email,
        )
        logger.info("✅ SignUp succeeded")

        client.admin_confirm_sign_up(config.user_pool_id, credentials.username)
        logger.info("✅ AdminConfirmSignUp succeeded")
    except ProviderError as e:
        logger.error(f"{FAILURE_MARKER} {e.message}")
        raise

    return credentials
