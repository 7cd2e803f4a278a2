#!/usr/bin/env python3
import argparse
import sys

from assistant.ui.session import ChatApiClient, ChatClientError, ChatSession, CooldownError
from assistant.ui.storage import SqlStore

HELP = "Commands: /clear  /theme  /models  /quit"


def print_history(session: ChatSession) -> None:
    if not session.messages:
        print("Start a conversation. Ask me anything!")
    for m in session.messages:
        who = "You" if m.role == "user" else "AI"
        print(f"[{m.time}] {who}: {m.text}")


def handle_command(session: ChatSession, line: str) -> bool:
    """Run a slash command. Returns False when the loop should stop."""
    cmd = line.strip().lower()
    if cmd in ("/quit", "/exit"):
        return False
    if cmd == "/clear":
        session.clear()
        print("Chat cleared.")
    elif cmd == "/theme":
        print(f"Theme: {session.toggle_theme()}")
    elif cmd == "/models":
        try:
            for name in session.api.list_models():
                print(f"  {name}")
        except ChatClientError as e:
            print(f"Error: Could not list models: {e}")
    else:
        print(HELP)
    return True


def chat_loop(session: ChatSession) -> None:
    print_history(session)
    print(HELP)
    while True:
        try:
            line = input("\nYou: ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if line.startswith("/"):
            if not handle_command(session, line):
                break
            continue
        try:
            reply = session.send(line)
        except CooldownError:
            print("Please wait a moment before sending again.")
            continue
        if reply is not None:
            print(f"[{reply.time}] AI: {reply.text}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Terminal client for the Gemini AI chat server")
    parser.add_argument("--url", default="http://localhost:5000", help="Chat server base URL")
    parser.add_argument("--db", default="assistant_ui.db", help="SQLite file holding history and theme")
    args = parser.parse_args(argv)

    session = ChatSession(ChatApiClient(args.url), SqlStore(f"sqlite:///{args.db}"))
    chat_loop(session)
    return 0


if __name__ == "__main__":
    sys.exit(main())
