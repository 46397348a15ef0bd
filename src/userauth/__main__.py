"""Sign in and inspect user access tokens. Use --help for usage."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from userauth.config import get_token_cache_path, load_auth_config, save_token_cache
from userauth.errors.exceptions import AuthError
from userauth.logging.setup import setup_logging
from userauth.logging.utilities import log_exception, mask_identity
from userauth.tokens.provider import UserTokenProvider
from userauth.tokens.token import RenewableAccessToken

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="userauth",
        description="Acquire user access tokens with silent renewal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Device code sign-in, caching the result
    python -m userauth --config auth.yaml login

    # Username/password sign-in (password read from an environment variable)
    python -m userauth login --user alice@contoso.com --password-env USER_PASSWORD

    # Silent token from the cache
    python -m userauth token --user alice@contoso.com
        """,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with an 'auth' section",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Write JSON logs to this directory",
    )
    parser.add_argument(
        "--show-token",
        action="store_true",
        help="Include the access token in the output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login", help="Sign in interactively")
    login.add_argument("--user", default=None, help="Username (UPN)")
    login.add_argument(
        "--password-env",
        default=None,
        help="Environment variable holding the password (enables username/password flow)",
    )

    token = subparsers.add_parser("token", help="Get a token silently from the cache")
    token.add_argument("--user", default=None, help="Username (UPN) of the cached account")

    return parser.parse_args(argv)


def summarize(token: RenewableAccessToken, show_token: bool = False) -> dict:
    summary = {
        "user": mask_identity(token.user_id),
        "tenant_id": token.tenant_id,
        "login_type": token.login_type.value,
        "expires_on": token.expires_on.isoformat(),
    }
    if show_token:
        summary["access_token"] = token.access_token
    return summary


def _prompt(message: str) -> None:
    print(message, file=sys.stderr, flush=True)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    setup_logging(
        console_level=getattr(logging, args.log_level),
        log_dir=args.log_dir,
    )

    try:
        config = load_auth_config(args.config)
        password = None
        prompt_action = None
        if args.command == "login":
            prompt_action = _prompt
            if args.password_env:
                password = os.environ.get(args.password_env)
                if password is None:
                    logger.error("Environment variable %s is not set", args.password_env)
                    return 2

        with UserTokenProvider() as provider:
            token = provider.get_access_token(
                config,
                prompt_action=prompt_action,
                user_id=args.user,
                password=password,
            )
            token.authorization_header()
    except AuthError as e:
        log_exception(logger, e, "Authentication failed", include_traceback=False)
        print(e.message, file=sys.stderr)
        return 1

    cache_path = get_token_cache_path(args.config)
    if cache_path is not None:
        save_token_cache(config.token_cache, cache_path)

    print(json.dumps(summarize(token, args.show_token), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
