"""
Command line entry point for the CI harness.

Provisions a throwaway user (or uses static credentials), runs the public,
mutation and storage suites, prints a summary and exits with 0 when every
check passed and 1 otherwise.
"""
import argparse
import logging
import sys
from typing import List, Optional

from botocore.exceptions import BotoCoreError

from .config import ConfigurationError, HarnessConfig, get_setting, load_config
from .flows import TestFunctions, TestOrchestrator
from .graphql import AppSyncClient
from .identity import CognitoIdentityClient, ProviderError
from .provisioner import create_test_user
from .runner import TestRunner

logger = logging.getLogger(__name__)

PLACEHOLDER_USERNAME = "YOUR_USERNAME_HERE"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amplify-ci-harness",
        description="Integration tests for an Amplify backend with a throwaway Cognito user",
    )
    parser.add_argument("--config", help="Path to amplifyconfiguration.json or amplify_outputs.json "
                                         "(default: $AMPLIFY_CONFIG_PATH or src/amplifyconfiguration.json)")
    parser.add_argument("--username", help="Use an existing user instead of provisioning one "
                                           "(default: $CI_TEST_USERNAME)")
    parser.add_argument("--password", help="Password for --username (default: $CI_TEST_PASSWORD)")
    parser.add_argument("--skip-public", action="store_true", help="Skip public GraphQL queries")
    parser.add_argument("--skip-mutations", action="store_true", help="Skip authenticated GraphQL mutations")
    parser.add_argument("--skip-storage", action="store_true", help="Skip S3 storage operations")
    parser.add_argument("--cleanup", action="store_true",
                        help="Delete the provisioned user after the run (never used as a rollback)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    # botocore is very chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)


def run_suites(args: argparse.Namespace, config: HarnessConfig, credentials: dict,
               identity: CognitoIdentityClient) -> int:
    """Run the selected suites and return the summary exit code."""
    runner = TestRunner()
    graphql = None
    if config.has_graphql:
        graphql = AppSyncClient(config.graphql_endpoint, api_key=config.api_key, timeout=config.http_timeout)

    try:
        functions = TestFunctions(credentials, config, identity, graphql_client=graphql)
        orchestrator = TestOrchestrator(functions, runner)

        if not args.skip_public:
            if graphql is not None:
                orchestrator.run_public_query_tests()
            else:
                logger.warning("⚠️  No GraphQL endpoint/API key configured, skipping public queries")

        want_mutations = not args.skip_mutations and graphql is not None
        want_storage = not args.skip_storage and config.has_storage
        if not args.skip_storage and not config.has_storage:
            logger.warning("⚠️  No storage bucket/identity pool configured, skipping storage tests")
        if not args.skip_mutations and graphql is None:
            logger.warning("⚠️  No GraphQL endpoint/API key configured, skipping mutations")

        if want_mutations or want_storage:
            if not functions.authenticate_user():
                runner.record_failure("Authenticate user", "Cannot run authenticated tests without authentication")
            else:
                if want_mutations:
                    orchestrator.run_mutation_tests()
                if want_storage:
                    orchestrator.run_storage_tests()
                functions.sign_out_user()
    finally:
        if graphql is not None:
            graphql.close()

    return runner.print_summary()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    print("🚀 Starting Amplify CI test harness\n")

    try:
        config = load_config(args.config)
        config.provider.validate()
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return 1

    try:
        identity = CognitoIdentityClient(config.provider.region)
    except (BotoCoreError, ValueError) as e:
        logger.error(f"❌ Cannot create Cognito client for region {config.provider.region!r}: {e}")
        return 1

    username = args.username or get_setting("CI_TEST_USERNAME")
    password = args.password or get_setting("CI_TEST_PASSWORD")
    provisioned = None

    if username:
        if username == PLACEHOLDER_USERNAME or not password:
            logger.warning("⚠️  Please provide real test user credentials (--username/--password) before running!")
            return 1
        credentials = {"username": username, "password": password}
    else:
        try:
            provisioned = create_test_user(config.provider, identity)
        except (ConfigurationError, ProviderError):
            return 1
        credentials = provisioned.as_sign_in()

    try:
        return run_suites(args, config, credentials, identity)
    finally:
        if args.cleanup and provisioned is not None:
            try:
                identity.admin_delete_user(config.provider.user_pool_id, provisioned.username)
                logger.info(f"🧹 Deleted test user {provisioned.username}")
            except ProviderError as e:
                logger.warning(f"⚠️  Failed to delete test user {provisioned.username}: {e.message}")


if __name__ == "__main__":
    sys.exit(main())
