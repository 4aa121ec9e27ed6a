"""Print the push copy for each notification kind, or send it through the log transport."""

import argparse
import asyncio

from ritual.core.logging import configure_logging
from ritual.notifications import messages
from ritual.notifications.providers import LogPushTransport


async def main(user_id: str, send: bool) -> None:
    payloads = [messages.daily_mirror(user_id), messages.feedback_prompt(user_id, "demo-outfit")]
    payloads += [messages.re_engagement(user_id, days) for days in (3, 7, 14)]
    transport = LogPushTransport()
    for p in payloads:
        print(f"{p.kind:16} {p.data.get('tier', ''):14} {p.title} | {p.body}")
        if send:
            await transport.schedule(p, None)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--user-id", default="demo")
    parser.add_argument("--send", action="store_true")
    args = parser.parse_args()
    configure_logging()
    asyncio.run(main(args.user_id, args.send))
