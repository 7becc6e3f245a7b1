"""Shared fixtures and fake AWS clients for the harness tests."""
import io
import json
import os
import sys

import httpx
import pytest
from botocore.exceptions import ClientError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from amplify_ci_harness import config as config_module
from amplify_ci_harness.config import HarnessConfig, ProviderConfig


GEN1_CONFIG = {
    "aws_project_region": "us-east-1",
    "aws_cognito_region": "us-east-1",
    "aws_user_pools_id": "us-east-1_TestPool",
    "aws_user_pools_web_client_id": "test-client-id-123",
    "aws_cognito_identity_pool_id": "us-east-1:11111111-2222-3333-4444-555555555555",
    "aws_appsync_graphqlEndpoint": "https://example.appsync-api.us-east-1.amazonaws.com/graphql",
    "aws_appsync_region": "us-east-1",
    "aws_appsync_authenticationType": "API_KEY",
    "aws_appsync_apiKey": "da2-testapikey",
    "aws_user_files_s3_bucket": "projectboards-test-bucket",
    "aws_user_files_s3_bucket_region": "us-east-1",
}

GEN2_OUTPUTS = {
    "version": "1.3",
    "auth": {
        "aws_region": "eu-west-1",
        "user_pool_id": "eu-west-1_Gen2Pool",
        "user_pool_client_id": "gen2-client-id",
        "identity_pool_id": "eu-west-1:aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee",
        "username_attributes": ["email"],
    },
    "data": {
        "url": "https://gen2.appsync-api.eu-west-1.amazonaws.com/graphql",
        "aws_region": "eu-west-1",
        "api_key": "da2-gen2key",
        "default_authorization_type": "API_KEY",
    },
    "storage": {
        "aws_region": "eu-west-1",
        "bucket_name": "gen2-bucket",
    },
}


def client_error(code: str, message: str, operation: str = "SignUp") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeCognito:
    """Records cognito-idp calls; failures are configured per operation."""

    def __init__(self, failures=None):
        self.calls = []
        self.failures = failures or {}

    def _record(self, operation, kwargs):
        self.calls.append((operation, kwargs))
        if operation in self.failures:
            raise self.failures[operation]

    def sign_up(self, **kwargs):
        self._record("sign_up", kwargs)
        return {"UserConfirmed": False, "UserSub": "sub-123"}

    def admin_confirm_sign_up(self, **kwargs):
        self._record("admin_confirm_sign_up", kwargs)
        return {}

    def initiate_auth(self, **kwargs):
        self._record("initiate_auth", kwargs)
        return {
            "AuthenticationResult": {
                "IdToken": "id-token",
                "AccessToken": "access-token",
                "RefreshToken": "refresh-token",
                "ExpiresIn": 3600,
                "TokenType": "Bearer",
            }
        }

    def global_sign_out(self, **kwargs):
        self._record("global_sign_out", kwargs)
        return {}

    def admin_delete_user(self, **kwargs):
        self._record("admin_delete_user", kwargs)
        return {}

    @property
    def operations(self):
        return [name for name, _ in self.calls]


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep developer .env files and CI variables out of the tests."""
    config_module.load_env_defaults.cache_clear()
    monkeypatch.setattr(config_module, "load_env_defaults", lambda: {})
    for key in ("AMPLIFY_CONFIG_PATH", "HARNESS_HTTP_TIMEOUT", "CI_TEST_USERNAME", "CI_TEST_PASSWORD"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def provider_config():
    return ProviderConfig(
        user_pool_id="us-east-1_TestPool",
        client_id="test-client-id-123",
        region="us-east-1",
    )


@pytest.fixture
def harness_config():
    return HarnessConfig.from_dict(GEN1_CONFIG)


@pytest.fixture
def gen1_file(tmp_path):
    path = tmp_path / "amplifyconfiguration.json"
    path.write_text(json.dumps(GEN1_CONFIG), encoding="utf-8")
    return path


@pytest.fixture
def fake_cognito():
    return FakeCognito()


class FakeAppSync:
    """httpx MockTransport handler emulating the Project Boards API."""

    OWNER_OPERATIONS = ("createProject", "updateProject", "deleteProject", "createTodo", "deleteTodo")
    PUBLIC_OPERATIONS = ("getRandomQuote", "listProjects", "listTodos")

    def __init__(self, api_key="da2-testapikey", access_token="access-token"):
        self.api_key = api_key
        self.access_token = access_token
        self.projects = {}
        self.todos = {}
        self.operations = []
        self._next_id = 1

    def _new_id(self):
        value = f"id-{self._next_id}"
        self._next_id += 1
        return value

    def __call__(self, request):
        body = json.loads(request.content)
        query = body["query"]
        variables = body.get("variables") or {}
        operation = next(
            (name for name in self.OWNER_OPERATIONS + self.PUBLIC_OPERATIONS if f"{name}(" in query or f"{name} " in query),
            None,
        )
        self.operations.append(operation)

        if operation in self.OWNER_OPERATIONS:
            if request.headers.get("authorization") != self.access_token:
                return httpx.Response(401, json={"errors": [{"errorType": "UnauthorizedException", "message": "Unauthorized"}]})
        elif request.headers.get("x-api-key") != self.api_key:
            return httpx.Response(401, json={"errors": [{"errorType": "UnauthorizedException", "message": "Invalid API key"}]})

        return httpx.Response(200, json={"data": {operation: self._resolve(operation, variables.get("input", {}))}})

    def _resolve(self, operation, item):
        if operation == "getRandomQuote":
            return {"message": "ok", "quote": "Stay hungry", "author": "Anon",
                    "timestamp": "2026-01-01T00:00:00Z", "totalQuotes": 10}
        if operation == "listProjects":
            return {"items": list(self.projects.values()), "nextToken": None}
        if operation == "listTodos":
            return {"items": list(self.todos.values()), "nextToken": None}
        if operation == "createProject":
            project = dict(item, id=self._new_id())
            self.projects[project["id"]] = project
            return project
        if operation == "updateProject":
            self.projects[item["id"]].update(item)
            return self.projects[item["id"]]
        if operation == "deleteProject":
            return {"id": self.projects.pop(item["id"])["id"]}
        if operation == "createTodo":
            todo = dict(item, id=self._new_id())
            self.todos[todo["id"]] = todo
            return todo
        if operation == "deleteTodo":
            return {"id": self.todos.pop(item["id"])["id"]}
        return None


class FakeS3:
    """In-memory bucket with a one-item page size to exercise pagination."""

    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[Key] = Body

    def list_objects_v2(self, Bucket, Prefix, ContinuationToken=None):
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        start = int(ContinuationToken or 0)
        page = keys[start:start + 1]
        response = {"Contents": [{"Key": k} for k in page], "IsTruncated": start + 1 < len(keys)}
        if response["IsTruncated"]:
            response["NextContinuationToken"] = str(start + 1)
        return response

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise client_error("NoSuchKey", "The specified key does not exist.", "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)
