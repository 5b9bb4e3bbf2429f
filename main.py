#!/usr/bin/env python3
"""
Conde Style -- command-line client for the storefront collections.

The CLI is its own client profile ("cli" by default): a login here persists
in local storage and survives between invocations until `logout`.

Usage:
  python main.py login ana --password secret
  python main.py whoami
  python main.py navigate /users
  python main.py products list
  python main.py products get 3
  python main.py products create --name "Camisa" --price 29.9
  python main.py products update 3 --name "Camisa" --price 24.9
  python main.py products delete 3
  python main.py users list
  python main.py logout

Environment variables:
  PRODUCTS_URL, USERS_URL   Override the collection URLs.
  STORAGE_DB_URL            Where the session is persisted.
"""

import argparse
import getpass
import json
import logging
import sys
from typing import Any, Optional

from auth.service import AuthService, InvalidCredentials, ServiceUnavailable
from auth.session import SessionStore
from auth.storage import LocalStorage
from core.config import get_settings
from core.navigation import NavigationGuard, RedirectTo, router
from core.resources import NotFoundError, RequestError, ResourceClient, products_client, users_client

_CLI_PROFILE = "cli"


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _strip_password(record: Any) -> Any:
    if isinstance(record, dict):
        return {k: v for k, v in record.items() if k != "password"}
    if isinstance(record, list):
        return [_strip_password(r) for r in record]
    return record


def _product_body(args: argparse.Namespace) -> dict[str, Any]:
    body: dict[str, Any] = {"name": args.name, "price": args.price}
    if args.image:
        body["image"] = args.image
    if args.description:
        body["description"] = args.description
    return body


def _user_body(args: argparse.Namespace) -> dict[str, Any]:
    body: dict[str, Any] = {"username": args.username, "password": args.password}
    if args.email:
        body["email"] = args.email
    return body


def _run_crud(client: ResourceClient, args: argparse.Namespace, body_builder, redact: bool = False) -> int:
    """Dispatch a list/get/create/update/delete subcommand to client."""
    action = args.action
    if action == "list":
        result = client.get_all()
    elif action == "get":
        result = client.get_by_id(args.id)
    elif action == "create":
        result = client.create(body_builder(args))
    elif action == "update":
        result = client.update(args.id, body_builder(args))
    else:
        result = client.delete(args.id)
    _print_json(_strip_password(result) if redact else result)
    return 0


def _add_crud_parsers(sub: argparse._SubParsersAction, name: str, add_fields) -> None:
    parser = sub.add_parser(name, help=f"Manage the {name} collection")
    actions = parser.add_subparsers(dest="action", required=True)
    actions.add_parser("list", help=f"List all {name}")
    get = actions.add_parser("get", help="Show one record")
    get.add_argument("id")
    create = actions.add_parser("create", help="Create a record")
    add_fields(create)
    update = actions.add_parser("update", help="Replace a record")
    update.add_argument("id")
    add_fields(update)
    delete = actions.add_parser("delete", help="Delete a record")
    delete.add_argument("id")


def _product_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", required=True)
    parser.add_argument("--price", type=float, required=True)
    parser.add_argument("--image", default=None, help="Image URL")
    parser.add_argument("--description", default=None)


def _user_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--email", default=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="condestyle",
        description="Command-line client for the Conde Style storefront.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py login ana@example.com
  python main.py products list
  python main.py navigate /users
        """,
    )
    parser.add_argument("--profile", default=_CLI_PROFILE, help="Local storage profile (default: cli)")
    parser.add_argument("--db", default=None, metavar="URL", help="Storage DB URL (default: STORAGE_DB_URL)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log requests and failures to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in with a username or email")
    login.add_argument("identifier")
    login.add_argument("--password", default=None, help="Prompted for when omitted")
    sub.add_parser("logout", help="Clear the stored session")
    sub.add_parser("whoami", help="Show the stored session user")
    navigate = sub.add_parser("navigate", help="Run the navigation guard for a route path")
    navigate.add_argument("path")

    _add_crud_parsers(sub, "products", _product_fields)
    _add_crud_parsers(sub, "users", _user_fields)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.CRITICAL,
        format="%(levelname)-5s %(name)s %(message)s",
        stream=sys.stderr,
    )

    settings = get_settings()
    storage = LocalStorage(args.db or settings.storage_db_url)
    session = SessionStore(storage, args.profile)
    guard = NavigationGuard(session)
    try:
        return _dispatch(args, session, guard)
    except NotFoundError:
        print("  [!] Record not found.", file=sys.stderr)
        return 1
    except RequestError as e:
        print(f"  [!] Request failed: {e}", file=sys.stderr)
        return 1
    finally:
        storage.close()


def _dispatch(args: argparse.Namespace, session: SessionStore, guard: NavigationGuard) -> int:
    if args.command == "login":
        password = args.password if args.password is not None else getpass.getpass("Password: ")
        auth = AuthService(users_client())
        try:
            user = auth.login_into(session, args.identifier, password)
        except InvalidCredentials:
            print("  [!] Invalid username or password.", file=sys.stderr)
            return 1
        except ServiceUnavailable as e:
            print(f"  [!] Login unavailable: {e}", file=sys.stderr)
            return 1
        print(f"Logged in as {user.username}.")
        return 0

    if args.command == "logout":
        AuthService.logout(session)
        print("Logged out.")
        return 0

    if args.command == "whoami":
        user = AuthService.current_user(session)
        if user is None:
            print("Not logged in.")
            return 1
        _print_json(_strip_password(user.to_record()))
        return 0

    if args.command == "navigate":
        try:
            route, decision = router.navigate(args.path, guard)
        except LookupError:
            print(f"  [!] No route for {args.path}.", file=sys.stderr)
            return 1
        if isinstance(decision, RedirectTo):
            print(f"{route.path} -> redirect {decision.path}")
            return 1
        print(f"{route.path} -> {route.view}")
        return 0

    if args.command == "products":
        return _run_crud(products_client(), args, _product_body)

    # users mirrors the /users page: the guard must let the transition through first.
    _route, decision = router.navigate("/users", guard)
    if isinstance(decision, RedirectTo):
        print("  [!] Log in first: python main.py login <username>", file=sys.stderr)
        return 1
    return _run_crud(users_client(), args, _user_body, redact=True)


if __name__ == "__main__":
    sys.exit(main())
