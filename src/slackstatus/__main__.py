"""slack-status entry point.

Examples:
  slack-status 5m :coffee: Getting coffee
  slack-status :dancing: Dancing for 1h
  slack-status --snooze 30m :zzz: Focus time
  slack-status --login --domain myteam --make-default
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta

from slackstatus import __version__
from slackstatus.args import StatusRequest, build_status_request, parse_duration
from slackstatus.auth import authenticate
from slackstatus.config import Settings, get_settings
from slackstatus.credentials import CredentialStore
from slackstatus.errors import SlackStatusError, UnknownDomainError
from slackstatus.logging_setup import setup_logging
from slackstatus.slack import SlackClient

logger = logging.getLogger(__name__)


def _duration_arg(value: str) -> timedelta:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slack-status",
        description="Set your Slack status from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("\n", 2)[2],
    )
    parser.add_argument("--snooze", action="store_true", help="snooze notifications")
    parser.add_argument(
        "--duration",
        type=_duration_arg,
        default=None,
        help="duration to set status for, e.g. 30m or 1h30m",
    )
    parser.add_argument("--emoji", default="", help="emoji to use as status")
    parser.add_argument("--access-token", default="", help="slack access token")
    parser.add_argument(
        "--domain", default="", help="workspace domain to use (default: the default domain)"
    )
    parser.add_argument(
        "--make-default", action="store_true", help="make --domain the default domain"
    )
    parser.add_argument(
        "--login", action="store_true", help="log in to a workspace even if a token is stored"
    )
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    # Options end at the first status word, so text such as "-_-" stays text
    parser.add_argument(
        "words", nargs=argparse.REMAINDER, help="[duration] [:emoji:] status text [for duration]"
    )
    return parser


def _status_words(words: list[str]) -> list[str]:
    if words[:1] == ["--"]:
        return words[1:]
    return words


def _save_login(
    settings: Settings, store: CredentialStore, token: str, make_default: bool
) -> str:
    """Store a token under its workspace domain and return the domain."""
    client = SlackClient(token, api_base=settings.api_base, timeout=settings.http_timeout)
    domain = client.team_domain()
    store.save_login(domain, token)
    if make_default:
        store.save_default_login(domain)
    return domain


def get_access_token(
    args: argparse.Namespace, settings: Settings, store: CredentialStore
) -> str:
    """Find a token to use, logging in if nothing usable is stored."""
    if args.access_token:
        _save_login(settings, store, args.access_token, args.make_default)
        return args.access_token

    if not args.login:
        try:
            if args.domain:
                token = store.get_token(args.domain)
                if args.make_default:
                    store.save_default_login(args.domain)
            else:
                token = store.get_default_token()
            return token
        except UnknownDomainError as e:
            logger.info("No stored login (%s), starting authentication", e)

    token = authenticate(settings)
    domain = _save_login(settings, store, token, args.make_default)
    if args.domain and domain != args.domain:
        logger.warning("Logged in to %s, not the requested domain %s", domain, args.domain)
    return token


def set_status(request: StatusRequest, client: SlackClient) -> None:
    client.set_status(request.status_text, request.emoji, request.expiration())
    if request.snooze:
        client.set_snooze(request.snooze_minutes)
    else:
        client.end_snooze()


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.debug else "WARNING")
    settings = get_settings()
    store = CredentialStore(settings=settings)

    request = build_status_request(
        _status_words(args.words), duration=args.duration, emoji=args.emoji, snooze=args.snooze
    )

    try:
        token = get_access_token(args, settings, store)
    except UnknownDomainError as e:
        print(f"error getting access token: {e}", file=sys.stderr)
        print("Run again with --login to authenticate with this workspace.", file=sys.stderr)
        sys.exit(1)
    except SlackStatusError as e:
        print(f"error getting access token: {e}", file=sys.stderr)
        sys.exit(1)

    client = SlackClient(token, api_base=settings.api_base, timeout=settings.http_timeout)
    try:
        set_status(request, client)
    except SlackStatusError as e:
        print(f"error setting status: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
