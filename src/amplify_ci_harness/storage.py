"""
S3 storage access for the signed-in test user.

The bucket policy only grants writes to authenticated identities, so the
client first exchanges the user's ID token for temporary AWS credentials
through the Cognito identity pool, then talks to S3 with those credentials.

Object keys use the Amplify access-level prefixes (``public/``,
``protected/<identity id>/``, ``private/<identity id>/``).
"""
import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "public/"


class StorageError(Exception):
    """Exception raised for storage operation failures"""
    pass


def _error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        return f"{error.get('Code', 'Unknown')}: {error.get('Message', str(e))}"
    return str(e)


def get_identity_credentials(
    identity_pool_id: str,
    user_pool_id: str,
    region: str,
    id_token: str,
    client: Any = None,
) -> Dict[str, str]:
    """
    Exchange a user-pool ID token for temporary AWS credentials.

    Returns:
        Dict with identity_id, access_key_id, secret_key and session_token

    Raises:
        StorageError: if the identity pool rejects the token
    """
    identity = client or boto3.client("cognito-identity", region_name=region)
    logins = {f"cognito-idp.{region}.amazonaws.com/{user_pool_id}": id_token}

    try:
        identity_id = identity.get_id(IdentityPoolId=identity_pool_id, Logins=logins)["IdentityId"]
        creds = identity.get_credentials_for_identity(IdentityId=identity_id, Logins=logins)["Credentials"]
    except (ClientError, BotoCoreError) as e:
        raise StorageError(f"Failed to obtain identity credentials: {_error_message(e)}") from e

    logger.debug(f"Obtained credentials for identity {identity_id}")
    return {
        "identity_id": identity_id,
        "access_key_id": creds["AccessKeyId"],
        "secret_key": creds["SecretKey"],
        "session_token": creds["SessionToken"],
    }


class StorageClient:
    """Client for the Amplify storage bucket"""

    def __init__(self, bucket: str, region: str, credentials: Optional[Dict[str, str]] = None,
                 s3_client: Any = None):
        if not bucket:
            raise StorageError("Storage bucket is not configured")
        self.bucket = bucket
        self.region = region
        if s3_client is not None:
            self._s3 = s3_client
        elif credentials:
            self._s3 = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=credentials["access_key_id"],
                aws_secret_access_key=credentials["secret_key"],
                aws_session_token=credentials["session_token"],
            )
        else:
            self._s3 = boto3.client("s3", region_name=region)

    def upload_text(self, key: str, body: str, content_type: str = "text/plain") -> None:
        """Upload a text object"""
        try:
            self._s3.put_object(Bucket=self.bucket, Key=key, Body=body.encode("utf-8"), ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Upload of {key} failed: {_error_message(e)}") from e
        logger.debug(f"Uploaded s3://{self.bucket}/{key}")

    def list_keys(self, prefix: str = PUBLIC_PREFIX) -> List[str]:
        """List object keys under a prefix"""
        keys: List[str] = []
        params: Dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        try:
            while True:
                response = self._s3.list_objects_v2(**params)
                keys.extend(obj["Key"] for obj in response.get("Contents", []))
                if not response.get("IsTruncated"):
                    break
                params["ContinuationToken"] = response["NextContinuationToken"]
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Listing {prefix} failed: {_error_message(e)}") from e
        return keys

    def download_text(self, key: str) -> str:
        """Download a text object"""
        try:
            response = self._s3.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read().decode("utf-8")
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Download of {key} failed: {_error_message(e)}") from e

    def delete(self, key: str) -> None:
        """Delete an object"""
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Delete of {key} failed: {_error_message(e)}") from e
        logger.debug(f"Deleted s3://{self.bucket}/{key}")
