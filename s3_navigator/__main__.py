"""Command line entry point: ``python -m s3_navigator``."""
import argparse
import getpass
import logging
import sys

from .controller import NavigatorController
from .errors import S3NavigatorError
from .navigation import NavigationTable
from .profiles import DEFAULT_START_URL, ConnectionProfile, ProfileStorage
from .settings import AppSettings, SettingsStorage
from .ui_utils import render_table

LOGGER = logging.getLogger("s3_navigator")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="s3_navigator", description="Browse Amazon S3 with signed GET requests.")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    get = commands.add_parser("get", help="fetch a bucket list, key listing or object")
    get.add_argument("url", nargs="?", help="S3 HTTPS URL (defaults to the profile's start URL)")
    get.add_argument("--profile", help="saved profile to sign with")
    get.add_argument("--expand", action="append", default=[], metavar="NAME", help="expand an entry; repeatable")
    get.add_argument("--output", help="write object content to this file instead of stdout")

    profiles = commands.add_parser("profiles", help="manage saved profiles")
    actions = profiles.add_subparsers(dest="action", required=True)
    actions.add_parser("list", help="list saved profiles")
    add = actions.add_parser("add", help="add or replace a profile")
    add.add_argument("name")
    add.add_argument("--access-key", required=True)
    add.add_argument("--start-url", default=DEFAULT_START_URL)
    remove = actions.add_parser("remove", help="delete a profile")
    remove.add_argument("name")
    return parser


def _run_get(args: argparse.Namespace, controller: NavigatorController, settings: AppSettings) -> int:
    profile_name = args.profile or settings.default_profile
    if profile_name:
        try:
            controller.select_profile(profile_name)
        except ValueError as exc:
            print(exc, file=sys.stderr)
            return 2
    else:
        controller.select_session_credentials()

    resource = controller.open(args.url)
    for name in args.expand:
        if not isinstance(resource, NavigationTable):
            print(f"Cannot expand '{name}': not a listing", file=sys.stderr)
            return 2
        if name not in resource:
            print(f"No entry named '{name}'", file=sys.stderr)
            return 2
        resource = resource.expand(name)

    if isinstance(resource, NavigationTable):
        print(render_table(resource))
    elif args.output:
        with open(args.output, "wb") as handle:
            handle.write(resource.body)
    else:
        sys.stdout.buffer.write(resource.body)
        sys.stdout.flush()
    return 0


def _run_profiles(args: argparse.Namespace, controller: NavigatorController) -> int:
    if args.action == "list":
        for profile in controller.list_profiles():
            print(f"{profile.name}\t{profile.access_key}\t{profile.start_url}")
        return 0
    if args.action == "add":
        secret_key = getpass.getpass("Secret key: ")
        controller.save_profile(
            ConnectionProfile(
                name=args.name,
                access_key=args.access_key,
                secret_key=secret_key,
                start_url=args.start_url,
            )
        )
        return 0
    try:
        controller.delete_profile(args.name)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 2
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = SettingsStorage().load()
    controller = NavigatorController(storage=ProfileStorage(), settings=settings)
    try:
        if args.command == "get":
            return _run_get(args, controller, settings)
        return _run_profiles(args, controller)
    except S3NavigatorError as exc:
        LOGGER.debug("Command '%s' failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        controller.close()


if __name__ == "__main__":
    sys.exit(main())
