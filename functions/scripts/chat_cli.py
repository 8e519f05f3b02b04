"""
Terminal client for the nearby chat API.

Signs in, posts a location once, lists nearby users every 10 seconds, and
with --chat-with tails a conversation every 2 seconds while reading lines to
send from stdin.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nearby.client import ApiClientError, NearbyApiClient
from nearby.polling import MESSAGE_POLL_SECONDS, NEARBY_POLL_SECONDS, Poller

logger = logging.getLogger(__name__)

# San Francisco, used when no coordinates are given.
DEMO_LATITUDE = 37.7749
DEMO_LONGITUDE = -122.4194


def demo_location() -> tuple[float, float]:
    return (
        DEMO_LATITUDE + (random.random() - 0.5) * 0.1,
        DEMO_LONGITUDE + (random.random() - 0.5) * 0.1,
    )


class ConversationPrinter:
    """Prints messages not seen on earlier polls."""

    def __init__(self, client: NearbyApiClient, recipient_id: str):
        self.client = client
        self.recipient_id = recipient_id
        self.seen: set[tuple[str, str, str]] = set()

    def __call__(self) -> None:
        messages = self.client.get_messages(self.recipient_id)
        for message in messages:
            marker = (message["senderId"], message["timestamp"], message["message"])
            if marker in self.seen:
                continue
            self.seen.add(marker)
            who = "them" if message["senderId"] == self.recipient_id else "me"
            print(f"[{message['timestamp']}] {who}: {message['message']}")


def print_nearby(client: NearbyApiClient) -> None:
    users = client.nearby_users()
    print(f"{len(users)} users nearby")
    for user in users:
        print(
            f"  {user['avatar']} {user['name']} ({user['id']}) "
            f"@ {user['latitude']:.4f},{user['longitude']:.4f}"
        )


def main() -> int:
    parser = argparse.ArgumentParser(description="Nearby chat terminal client")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument(
        "--signup",
        action="store_true",
        help="Create the account before signing in",
    )
    parser.add_argument("--name", default=None, help="Display name for --signup")
    parser.add_argument("--avatar", default="😊", help="Avatar emoji for --signup")
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lng", type=float, default=None)
    parser.add_argument(
        "--chat-with",
        default=None,
        help="User id to open a conversation with",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    client = NearbyApiClient(args.base_url)

    try:
        if args.signup:
            client.signup(
                args.email,
                args.password,
                args.name or args.email.split("@")[0],
                args.avatar,
            )
            logger.info("Account created for %s", args.email)
        user = client.signin(args.email, args.password)
        if args.lat is None or args.lng is None:
            latitude, longitude = demo_location()
            logger.info("No location given, using demo location")
        else:
            latitude, longitude = args.lat, args.lng
        client.update_location(latitude, longitude)
    except ApiClientError as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Signed in as %s", user.get("id"))

    pollers = [Poller(NEARBY_POLL_SECONDS, lambda: print_nearby(client), name="nearby")]
    if args.chat_with:
        pollers.append(
            Poller(
                MESSAGE_POLL_SECONDS,
                ConversationPrinter(client, args.chat_with),
                name="messages",
            )
        )
    for poller in pollers:
        poller.start()

    try:
        for line in sys.stdin:
            text = line.strip()
            if not text or not args.chat_with:
                continue
            try:
                client.send_message(args.chat_with, text)
            except ApiClientError as exc:
                logger.error("Failed to send message: %s", exc)
    except KeyboardInterrupt:
        pass
    finally:
        for poller in pollers:
            poller.stop(timeout=1)
    return 0


if __name__ == "__main__":
    sys.exit(main())
