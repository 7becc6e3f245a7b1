"""
Integration test harness for Amplify backends.

Provisions a throwaway Cognito user, exercises the GraphQL API and the
storage bucket with it, and reports pass/fail for CI.

Usage:
    from amplify_ci_harness import create_test_user, load_config

    config = load_config("src/amplifyconfiguration.json")
    credentials = create_test_user(config.provider)
"""
from .config import ConfigurationError, HarnessConfig, ProviderConfig, load_config
from .credentials import CredentialSet, generate_email, generate_password, generate_username
from .identity import CognitoIdentityClient, ProviderError
from .provisioner import create_test_user

__version__ = "1.0.0"

__all__ = [
    'ConfigurationError',
    'HarnessConfig',
    'ProviderConfig',
    'load_config',
    'CredentialSet',
    'generate_email',
    'generate_password',
    'generate_username',
    'CognitoIdentityClient',
    'ProviderError',
    'create_test_user',
]
