"""Command-line interface for the local user store."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from dataclasses import replace
from getpass import getpass
from typing import Sequence

from userstore.config import build_storage, load_store_config, resolve_config_path
from userstore.models import serialize_datetime
from userstore.storage import StorageError, resolve_storage_path
from userstore.store import UserStore

logger = logging.getLogger("userstore.cli")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Local user store utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the YAML configuration (defaults to USERSTORE_CONFIG or config/userstore.yaml)",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite storage file (defaults to USERSTORE_DB_PATH or data/userstore.sqlite3)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="list")

    subparsers.add_parser("init", help="Create the default users if the store is empty")
    subparsers.add_parser("list", help="List every stored user")
    subparsers.add_parser("count", help="Print the number of stored users")

    add_parser = subparsers.add_parser("add", help="Register a new client account")
    add_parser.add_argument("username", help="Unique username")
    add_parser.add_argument("email", help="Unique email address")
    add_parser.add_argument("--first-name", default=None)
    add_parser.add_argument("--last-name", default=None)
    add_parser.add_argument("--company", default=None)

    login_parser = subparsers.add_parser("login", help="Check a username/email and password")
    login_parser.add_argument("identifier", help="Username or email address")

    check_parser = subparsers.add_parser("check", help="Report whether a username or email is free")
    check_parser.add_argument("--username", default=None)
    check_parser.add_argument("--email", default=None)

    reset_parser = subparsers.add_parser("reset", help="Delete every user and restore the defaults")
    reset_parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    return parser.parse_args(args_list)


def _open_store(args: argparse.Namespace) -> UserStore:
    config_path = resolve_config_path(args.config or os.getenv("USERSTORE_CONFIG"))
    config = load_store_config(config_path)
    if args.db_path:
        config = replace(config, backend="sqlite", path=resolve_storage_path(args.db_path))
    storage = build_storage(config, db_env=os.getenv("USERSTORE_DB_PATH"))
    store = UserStore(storage, key=config.key)
    store.initialize()
    return store


def _list_users(store: UserStore) -> int:
    users = store.get_all()
    if not users:
        print("No users are currently registered.")
        return 0

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Username':<16}  {'Email':<28}  {'Role':<6}  {'Created':<24}  Last login")
    print("-" * 110)
    for user in users:
        created = serialize_datetime(user.created_at)
        last_login = serialize_datetime(user.last_login) if user.last_login else "never"
        print(f"{user.id:>4}  {user.username:<16}  {user.email:<28}  {user.role:<6}  {created:<24}  {last_login}")
    return 0


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass("Password: ")
        if not password:
            print("Password must not be empty. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _add_user(store: UserStore, args: argparse.Namespace) -> int:
    password = _prompt_for_password()
    if password is None:
        print("Aborted creating user.")
        return 1

    result = store.add(
        {
            "username": args.username,
            "email": args.email,
            "password": password,
            "firstName": args.first_name,
            "lastName": args.last_name,
            "company": args.company,
        }
    )
    if not result.success or result.user is None:
        print(f"Failed to create user: {result.message}", file=sys.stderr)
        return 1

    user = result.user
    print(f"Created user #{user.id}: {user.name} <{user.email}>")
    return 0


def _login(store: UserStore, identifier: str) -> int:
    password = getpass("Password: ")
    result = store.authenticate(identifier, password)
    if not result.success or result.user is None:
        print(f"Login failed: {result.message}", file=sys.stderr)
        return 1
    print(f"Signed in as {result.user.name} ({result.user.role})")
    return 0


def _check(store: UserStore, args: argparse.Namespace) -> int:
    if not args.username and not args.email:
        print("Provide --username and/or --email to check.", file=sys.stderr)
        return 1

    status = 0
    if args.username:
        available = store.is_username_available(args.username)
        print(f"Username '{args.username.strip()}': {'available' if available else 'taken'}")
        status = status or (0 if available else 1)
    if args.email:
        available = store.is_email_available(args.email)
        print(f"Email '{args.email.strip()}': {'available' if available else 'taken'}")
        status = status or (0 if available else 1)
    return status


def _reset(store: UserStore, *, confirmed: bool) -> int:
    if not confirmed:
        answer = input("This deletes every stored user. Continue? [y/N]: ").strip().lower()
        if answer not in ("y", "yes"):
            print("Reset cancelled.")
            return 1
    users = store.reset()
    print(f"Store reset; {len(users)} default user(s) restored.")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        store = _open_store(args)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    except StorageError as exc:
        print(f"Storage unavailable: {exc}", file=sys.stderr)
        return 2

    if args.command == "list":
        return _list_users(store)
    if args.command == "init":
        print(f"User store ready with {store.count()} user(s).")
        return 0
    if args.command == "count":
        print(store.count())
        return 0
    if args.command == "add":
        return _add_user(store, args)
    if args.command == "login":
        return _login(store, args.identifier)
    if args.command == "check":
        return _check(store, args)
    if args.command == "reset":
        return _reset(store, confirmed=args.yes)

    logger.error("Unknown command %s", args.command)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
