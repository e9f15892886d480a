# chatvision/cli.py
import argparse
import getpass
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from .client import DEFAULT_API_URL, ApiError, AuthState, ChatComposer, ChatVisionClient, ComposerError
from .config import configure_logging

HELP = "Type a message. /image PATH [prompt] attaches an image, /quit leaves."


def _print_messages(messages: List[dict]) -> None:
    for m in messages:
        tag = "you" if m["role"] == "user" else "ai "
        suffix = " [image]" if m.get("imageData") else ""
        print(f"{tag}> {m['content']}{suffix}")


def cmd_headline(client: ChatVisionClient, args) -> int:
    print(client.headline())
    return 0


def cmd_register(client: ChatVisionClient, args) -> int:
    password = args.password or getpass.getpass("Password: ")
    client.register(args.username, password)
    print("Account created successfully! Please log in.")
    return 0


def cmd_login(client: ChatVisionClient, args) -> int:
    password = args.password or getpass.getpass("Password: ")
    user = client.login(args.username, password)
    print(f"Logged in as {user['username']}")
    return 0


def cmd_logout(client: ChatVisionClient, args) -> int:
    client.logout()
    print("Logged out successfully!")
    return 0


def cmd_dashboard(client: ChatVisionClient, args) -> int:
    board = client.dashboard()
    stats = board["stats"]
    print(f"Welcome back, {board['user']['username']}!")
    print(
        f"chats: {stats['totalChats']}  messages: {stats['totalMessages']}  "
        f"images analyzed: {stats['imagesAnalyzed']}"
    )
    if not board["recent_sessions"]:
        print("No conversations yet.")
    for s in board["recent_sessions"]:
        print(f"  {s['sessionId']}  {s['createdAt']}")
    return 0


def _parse_image_command(line: str):
    parts = line.split(maxsplit=2)
    if len(parts) < 2:
        raise ValueError("usage: /image PATH [prompt]")
    path = Path(parts[1]).expanduser()
    prompt = parts[2] if len(parts) > 2 else ""
    mime_type = mimetypes.guess_type(path.name)[0] or "image/png"
    return path.read_bytes(), prompt, mime_type


def cmd_chat(client: ChatVisionClient, args) -> int:
    composer = ChatComposer(client, args.session)
    composer.open()
    print(f"session {composer.session_id}")
    _print_messages(composer.history())
    print(HELP)

    while True:
        try:
            line = input("you> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return 0
        if not line:
            continue
        if line == "/quit":
            return 0

        image = None
        mime_type = "image/png"
        text = line
        if line.startswith("/image"):
            try:
                image, text, mime_type = _parse_image_command(line)
            except (OSError, ValueError) as e:
                print(f"error: {e}")
                continue

        try:
            result = composer.send(text, image=image, mime_type=mime_type)
        except ComposerError as e:
            print(f"error: {e} (your message was saved without a reply)")
            continue
        print(f"ai > {result.reply}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatvision", description="Chat with an AI model by text or image.")
    parser.add_argument("--api-url", default=DEFAULT_API_URL)
    parser.add_argument("--auth-file", default=None, help="where the login is kept")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("headline").set_defaults(func=cmd_headline)

    for name, func in (("register", cmd_register), ("login", cmd_login)):
        p = sub.add_parser(name)
        p.add_argument("username")
        p.add_argument("--password")
        p.set_defaults(func=func)

    sub.add_parser("logout").set_defaults(func=cmd_logout)
    sub.add_parser("dashboard").set_defaults(func=cmd_dashboard)

    chat = sub.add_parser("chat")
    chat.add_argument("--session", help="resume an existing session id")
    chat.set_defaults(func=cmd_chat)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("WARNING")
    auth = AuthState(args.auth_file) if args.auth_file else AuthState()
    client = ChatVisionClient(args.api_url, auth=auth)
    try:
        return args.func(client, args)
    except ApiError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        print(f"error: could not reach {args.api_url}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
