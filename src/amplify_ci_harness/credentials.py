"""
Throwaway credential generation for CI test users.

Every CI run registers a brand-new user, so usernames and emails must never
collide, even when several pipelines provision users in the same pool at the
same time.

Formats:
  username: ci-test-<epoch millis>-<4 hex chars>
  email:    ci-test-<unique token>@test.example.com
  password: CiTest1! + 8 random [A-Za-z0-9]

The unique token is the username without its ``ci-test-`` prefix, so the
email of a run can always be traced back to the username it came from.
"""
import secrets
import string
import time
from dataclasses import dataclass

USERNAME_PREFIX = "ci-test-"
EMAIL_DOMAIN = "test.example.com"

# Uppercase (C), lowercase (i, e, s, t), digit (1) and special char (!)
PASSWORD_PREFIX = "CiTest1!"
PASSWORD_SUFFIX_LENGTH = 8
PASSWORD_ALPHABET = string.ascii_letters + string.digits

# Last timestamp handed out; keeps usernames strictly increasing per process
_last_timestamp = 0


@dataclass(frozen=True)
class CredentialSet:
    """Credentials of a provisioned test user.

    ``username`` is the email address because the user pool uses email as
    its username attribute.
    """
    username: str
    password: str
    email: str

    def as_sign_in(self) -> dict[str, str]:
        """Return the ``{username, password}`` pair handed to the test flows."""
        return {"username": self.username, "password": self.password}

    def __repr__(self) -> str:
        return f"CredentialSet(username={self.username!r}, password='***', email={self.email!r})"


def generate_username() -> str:
    """
    Generate a unique username.

    The millisecond timestamp never repeats within a process (calls in the
    same millisecond are bumped forward), the random hex part keeps parallel
    CI runs that start in the same millisecond apart.

    Returns:
        Username like "ci-test-1718023456789-a3f9"
    """
    global _last_timestamp
    timestamp = max(time.time_ns() // 1_000_000, _last_timestamp + 1)
    _last_timestamp = timestamp
    return f"{USERNAME_PREFIX}{timestamp}-{secrets.token_hex(2)}"


def generate_password() -> str:
    """
    Generate a password that satisfies the Cognito password policy.

    The fixed prefix alone satisfies the policy; the random suffix only adds
    entropy, so its composition is unconstrained.

    Returns:
        16 character password
    """
    suffix = ''.join(secrets.choice(PASSWORD_ALPHABET) for _ in range(PASSWORD_SUFFIX_LENGTH))
    return PASSWORD_PREFIX + suffix


def generate_email(unique_token: str) -> str:
    """Format the email address for a unique token."""
    if not unique_token:
        raise ValueError("unique_token must be a non-empty string")
    return f"{USERNAME_PREFIX}{unique_token}@{EMAIL_DOMAIN}"


def unique_token_from_username(username: str) -> str:
    """Strip the ``ci-test-`` prefix from a generated username."""
    if username.startswith(USERNAME_PREFIX):
        return username[len(USERNAME_PREFIX):]
    return username


def generate_credentials() -> CredentialSet:
    """Generate a complete credential set for one test run."""
    token = unique_token_from_username(generate_username())
    email = generate_email(token)
    return CredentialSet(username=email, password=generate_password(), email=email)
