"""List all the Webex spaces (rooms) you are a member of.

Usage:
    BOT_ACCESS_TOKEN="<token>" python examples/list_spaces.py

You can obtain a token by:
- For a bot: create a bot at https://developer.webex.com/my-apps
- For yourself: get a Personal Access Token at
  https://developer.webex.com/docs/getting-started
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys

from webex_transport import WebexClient, WebexError


def truncate(text: str, max_len: int) -> str:
    if len(text) > max_len:
        return f"{text[: max_len - 3]}..."
    return text


async def main() -> int:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "WARNING"))

    token = os.environ.get("BOT_ACCESS_TOKEN")
    if not token:
        print("Error: BOT_ACCESS_TOKEN environment variable not set", file=sys.stderr)
        print(
            'Usage: BOT_ACCESS_TOKEN="your_token" python examples/list_spaces.py',
            file=sys.stderr,
        )
        return 1

    print("Connecting to Webex...\n")
    async with WebexClient(token) as webex:
        print("Fetching all spaces...\n")
        try:
            rooms = await webex.list_rooms()
        except WebexError as err:
            print(f"Error fetching spaces [{err.kind.value}]: {err}", file=sys.stderr)
            return 1

    if not rooms:
        print("You are not in any spaces.")
        return 0

    print(f"Found {len(rooms)} space(s):\n")
    print(f"{'Space Name':<50} {'Type':<10} {'Created':<30}")
    print("-" * 90)
    for room in rooms:
        name = room.title or "<No title>"
        print(f"{truncate(name, 48):<50} {room.type.value:<10} {room.created[:10]:<30}")

    print("\n\n=== Raw JSON Output ===\n")
    print(json.dumps([room.to_dict() for room in rooms], indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
