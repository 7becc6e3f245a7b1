"""
Authenticated test flows against the backend under test.

TestFunctions holds the checks and the state they share (tokens, ids of
records created by earlier checks). TestOrchestrator groups the checks into
the three suites and feeds them through a TestRunner:

1. Public GraphQL queries (API key, no sign-in)
2. Owner-authorized GraphQL mutations (requires sign-in)
3. S3 storage operations (requires sign-in)

The credentials are treated as opaque sign-in material; nothing here depends
on how they were created.
"""
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from . import queries
from .config import HarnessConfig
from .graphql import AppSyncClient
from .identity import CognitoIdentityClient, ProviderError
from .runner import TestRunner
from .storage import PUBLIC_PREFIX, StorageClient, get_identity_credentials

logger = logging.getLogger(__name__)

StorageFactory = Callable[[Dict[str, str]], StorageClient]


def _expect(condition: Any, message: str) -> None:
    if not condition:
        raise AssertionError(message)


class TestFunctions:
    """Checks run by the harness, sharing sign-in state"""
    __test__ = False

    def __init__(
        self,
        credentials: Dict[str, str],
        config: HarnessConfig,
        identity_client: CognitoIdentityClient,
        graphql_client: Optional[AppSyncClient] = None,
        storage_factory: Optional[StorageFactory] = None,
        identity_credentials_provider: Optional[Callable[[str], Dict[str, str]]] = None,
    ):
        self.credentials = credentials
        self.config = config
        self.identity = identity_client
        self.graphql = graphql_client
        self._storage_factory = storage_factory or self._default_storage
        self._identity_credentials = identity_credentials_provider or self._default_identity_credentials

        self.tokens: Dict[str, str] = {}
        self.project_id: Optional[str] = None
        self.todo_id: Optional[str] = None
        self.storage: Optional[StorageClient] = None
        self.storage_key = f"{PUBLIC_PREFIX}ci-test-{secrets.token_hex(6)}.txt"
        self.storage_body = f"CI storage check {datetime.now(timezone.utc).isoformat()}"

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate_user(self) -> bool:
        """Sign in with the provided credentials. Returns False on failure."""
        logger.info(f"🔐 Signing in as {self.credentials['username']}")
        try:
            self.tokens = self.identity.sign_in(
                self.config.provider.client_id,
                self.credentials["username"],
                self.credentials["password"],
            )
        except ProviderError as e:
            logger.error(f"❌ Sign-in failed: {e.message}")
            return False

        if self.graphql is not None:
            self.graphql.set_access_token(self.tokens.get("AccessToken"))
        logger.info("✅ Signed in")
        return True

    def sign_out_user(self) -> None:
        """Revoke the session tokens. Failures are logged, not raised."""
        access_token = self.tokens.get("AccessToken")
        if not access_token:
            return
        try:
            self.identity.sign_out(access_token)
            logger.info("👋 Signed out")
        except ProviderError as e:
            logger.warning(f"⚠️  Sign-out failed: {e.message}")
        finally:
            self.tokens = {}
            if self.graphql is not None:
                self.graphql.set_access_token(None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.tokens.get("AccessToken"))

    # ------------------------------------------------------------------
    # Public queries
    # ------------------------------------------------------------------

    def _require_graphql(self) -> AppSyncClient:
        _expect(self.graphql is not None, "GraphQL API is not configured")
        return self.graphql

    def test_get_random_quote(self) -> Dict[str, Any]:
        data = self._require_graphql().execute(queries.GET_RANDOM_QUOTE)
        quote = data.get("getRandomQuote")
        _expect(quote, "getRandomQuote returned no data")
        _expect(quote.get("quote") and quote.get("author"), "quote response is missing quote/author")
        return quote

    def test_list_projects(self) -> list:
        data = self._require_graphql().execute(queries.LIST_PROJECTS, {"limit": 10})
        listing = data.get("listProjects")
        _expect(listing is not None, "listProjects returned no data")
        return listing.get("items") or []

    def test_list_todos(self) -> list:
        data = self._require_graphql().execute(queries.LIST_TODOS, {"limit": 10})
        listing = data.get("listTodos")
        _expect(listing is not None, "listTodos returned no data")
        return listing.get("items") or []

    # ------------------------------------------------------------------
    # Owner mutations
    # ------------------------------------------------------------------

    def test_create_project(self) -> Dict[str, Any]:
        project_input = {
            "title": f"CI Test Project {secrets.token_hex(3)}",
            "description": "Created by the CI harness",
            "status": "ACTIVE",
            "color": "#007bff",
        }
        data = self._require_graphql().execute(
            queries.CREATE_PROJECT, {"input": project_input}, auth_mode="user_pool"
        )
        project = data.get("createProject")
        _expect(project and project.get("id"), "createProject returned no id")
        _expect(project.get("title") == project_input["title"], "createProject returned a different title")
        self.project_id = project["id"]
        return project

    def test_update_project(self) -> Dict[str, Any]:
        _expect(self.project_id, "no project was created")
        data = self._require_graphql().execute(
            queries.UPDATE_PROJECT,
            {"input": {"id": self.project_id, "status": "COMPLETED"}},
            auth_mode="user_pool",
        )
        project = data.get("updateProject")
        _expect(project and project.get("status") == "COMPLETED", "updateProject did not change the status")
        return project

    def test_create_todo(self) -> Dict[str, Any]:
        _expect(self.project_id, "no project was created")
        todo_input = {
            "name": f"CI Test Todo {secrets.token_hex(3)}",
            "description": "Created by the CI harness",
            "projectID": self.project_id,
        }
        data = self._require_graphql().execute(queries.CREATE_TODO, {"input": todo_input}, auth_mode="user_pool")
        todo = data.get("createTodo")
        _expect(todo and todo.get("id"), "createTodo returned no id")
        _expect(todo.get("projectID") == self.project_id, "createTodo is not linked to the project")
        self.todo_id = todo["id"]
        return todo

    def test_delete_todo(self) -> Dict[str, Any]:
        _expect(self.todo_id, "no todo was created")
        data = self._require_graphql().execute(
            queries.DELETE_TODO, {"input": {"id": self.todo_id}}, auth_mode="user_pool"
        )
        deleted = data.get("deleteTodo")
        _expect(deleted and deleted.get("id") == self.todo_id, "deleteTodo returned a different id")
        self.todo_id = None
        return deleted

    def test_delete_project(self) -> Dict[str, Any]:
        _expect(self.project_id, "no project was created")
        data = self._require_graphql().execute(
            queries.DELETE_PROJECT, {"input": {"id": self.project_id}}, auth_mode="user_pool"
        )
        deleted = data.get("deleteProject")
        _expect(deleted and deleted.get("id") == self.project_id, "deleteProject returned a different id")
        self.project_id = None
        return deleted

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _default_identity_credentials(self, id_token: str) -> Dict[str, str]:
        return get_identity_credentials(
            identity_pool_id=self.config.identity_pool_id,
            user_pool_id=self.config.provider.user_pool_id,
            region=self.config.provider.region,
            id_token=id_token,
        )

    def _default_storage(self, aws_credentials: Dict[str, str]) -> StorageClient:
        return StorageClient(self.config.bucket, self.config.bucket_region, credentials=aws_credentials)

    def _require_storage(self) -> StorageClient:
        if self.storage is None:
            id_token = self.tokens.get("IdToken")
            _expect(id_token, "storage checks require a signed-in user")
            self.storage = self._storage_factory(self._identity_credentials(id_token))
        return self.storage

    def test_upload_file(self) -> None:
        self._require_storage().upload_text(self.storage_key, self.storage_body)

    def test_list_files(self) -> list:
        keys = self._require_storage().list_keys(PUBLIC_PREFIX)
        _expect(self.storage_key in keys, f"{self.storage_key} not found in listing")
        return keys

    def test_download_file(self) -> str:
        body = self._require_storage().download_text(self.storage_key)
        _expect(body == self.storage_body, "downloaded content does not match upload")
        return body

    def test_delete_file(self) -> None:
        storage = self._require_storage()
        storage.delete(self.storage_key)
        _expect(self.storage_key not in storage.list_keys(PUBLIC_PREFIX), f"{self.storage_key} still listed")


class TestOrchestrator:
    """Runs the check suites through a TestRunner"""
    __test__ = False

    def __init__(self, functions: TestFunctions, runner: TestRunner):
        self.functions = functions
        self.runner = runner

    def run_public_query_tests(self) -> None:
        self.runner.section("📖 Part 1: Public GraphQL Queries")
        self.runner.run_test("Get random quote", self.functions.test_get_random_quote)
        self.runner.run_test("List projects (public)", self.functions.test_list_projects)
        self.runner.run_test("List todos (public)", self.functions.test_list_todos)

    def run_mutation_tests(self) -> None:
        self.runner.section("✏️  Part 2: Authenticated GraphQL Mutations")
        self.runner.run_test("Create project", self.functions.test_create_project)
        self.runner.run_test("Update project", self.functions.test_update_project)
        self.runner.run_test("Create todo", self.functions.test_create_todo)
        self.runner.run_test("Delete todo", self.functions.test_delete_todo)
        self.runner.run_test("Delete project", self.functions.test_delete_project)

    def run_storage_tests(self) -> None:
        self.runner.section("🗂️  Part 3: S3 Storage Operations")
        self.runner.run_test("Upload file", self.functions.test_upload_file)
        self.runner.run_test("List files", self.functions.test_list_files)
        self.runner.run_test("Download file", self.functions.test_download_file)
        self.runner.run_test("Delete file", self.functions.test_delete_file)
