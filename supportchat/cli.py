"""
Command line entry point.

    supportchat serve [--host 0.0.0.0] [--port 8000] [--reload]
    supportchat chat  [--url http://localhost:8000/api/chat] [--key ...]
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from supportchat.client import ChatStreamConsumer, ChatWidget, WidgetSnapshot
from supportchat.config import settings

CONTACT_PROMPT = "[Interested in pricing? Type /contact to leave your details.]"


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "supportchat.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


class _TerminalRenderer:
    """Prints only the new tail of the streaming assistant message."""

    def __init__(self) -> None:
        self._printed = 0
        self._count = 0

    def __call__(self, snapshot: WidgetSnapshot) -> None:
        if not snapshot.messages:
            return
        if len(snapshot.messages) != self._count:
            self._count = len(snapshot.messages)
            self._printed = 0
        last = snapshot.messages[-1]
        if last.role != "assistant":
            self._printed = 0
            return
        sys.stdout.write(last.content[self._printed:])
        sys.stdout.flush()
        self._printed = len(last.content)


def _prompt_contact() -> dict:
    return {
        "name": input("Name: "),
        "companyName": input("Company: "),
        "email": input("Email: "),
        "phone": input("Phone: "),
    }


async def _chat_loop(args: argparse.Namespace) -> int:
    consumer = ChatStreamConsumer(chat_url=args.url, widget_key=args.key)
    widget = ChatWidget(consumer)
    widget.subscribe(_TerminalRenderer())

    try:
        while True:
            try:
                text = await asyncio.to_thread(input, "\nyou> ")
            except EOFError:
                break
            if text.strip() in ("/quit", "/exit"):
                break
            if text.strip() == "/contact":
                try:
                    result = await consumer.submit_contact(await asyncio.to_thread(_prompt_contact))
                except Exception as e:
                    print(f"Failed to send. Please try again. ({e})")
                else:
                    print(result.message)
                continue

            reply = await widget.send(text)
            print()
            if reply is not None and reply.show_contact_form:
                print(CONTACT_PROMPT)
    finally:
        await consumer.aclose()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="supportchat", description="Website support chat")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    chat = sub.add_parser("chat", help="Chat with a running server from the terminal")
    chat.add_argument("--url", default=settings.chat_url, help="Chat endpoint URL")
    chat.add_argument("--key", default=settings.widget_key, help="Widget key (bearer token)")

    args = parser.parse_args(argv)
    if args.command == "serve":
        return _serve(args)
    return asyncio.run(_chat_loop(args))


if __name__ == "__main__":
    sys.exit(main())
