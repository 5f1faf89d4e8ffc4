"""
Terminal front-end for the todo API.

Usage:
    todo-cli list
    todo-cli add "Buy milk" -d "2 liters"
    todo-cli toggle 3
    todo-cli delete 3 --yes

The server URL comes from --base-url, then TODO_API_URL, then
http://localhost:3000.
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from .client import DEFAULT_BASE_URL, Todo, TodoApiClient, TodoBoard
from .logging_setup import setup_logging


def _format_todo(todo: Todo) -> str:
    mark = "x" if todo["completed"] else " "
    created = str(todo.get("created_at", ""))[:10]
    line = f"[{mark}] #{todo['id']:<4} {todo['title']}  ({created})"
    if todo.get("description"):
        line += f"\n         {todo['description']}"
    return line


def _print_board(board: TodoBoard) -> None:
    if not board.todos:
        print("No todos yet.")
        return
    for todo in board.todos:
        print(_format_todo(todo))


def _ask(message: str) -> bool:
    answer = input(f"{message} [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todo-cli", description="Manage todos from the terminal.")
    parser.add_argument(
        "--base-url",
        default=None,
        help=f"API base URL (default: $TODO_API_URL or {DEFAULT_BASE_URL})",
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show all todos, newest first")

    add = sub.add_parser("add", help="Create a todo")
    add.add_argument("title")
    add.add_argument("-d", "--description", default="")

    toggle = sub.add_parser("toggle", help="Flip the completed flag of a todo")
    toggle.add_argument("id", type=int)

    delete = sub.add_parser("delete", help="Delete a todo")
    delete.add_argument("id", type=int)
    delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    return parser


def main(argv: Optional[Sequence[str]] = None, api: Optional[TodoApiClient] = None) -> int:
    load_dotenv(override=False)
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    def notify(message: str) -> None:
        print(message, file=sys.stderr)

    base_url = args.base_url or os.getenv("TODO_API_URL") or DEFAULT_BASE_URL
    api = api or TodoApiClient(base_url)
    confirm = (lambda _m: True) if getattr(args, "yes", False) else _ask
    board = TodoBoard(api, notify=notify, confirm=confirm)

    try:
        if not board.load():
            print(board.error, file=sys.stderr)
            return 1

        if args.command == "list":
            _print_board(board)
            return 0
        if args.command == "add":
            created = board.add(args.title, args.description)
            if created is None:
                return 1
            print(_format_todo(created))
            return 0
        if args.command == "toggle":
            if board.find(args.id) is None:
                print(f"Todo #{args.id} not found", file=sys.stderr)
                return 1
            updated = board.toggle(args.id)
            if updated is None:
                return 1
            print(_format_todo(updated))
            return 0
        if args.command == "delete":
            if board.find(args.id) is None:
                print(f"Todo #{args.id} not found", file=sys.stderr)
                return 1
            return 0 if board.remove(args.id) else 1
    finally:
        api.close()
    return 2


if __name__ == "__main__":
    sys.exit(main())
