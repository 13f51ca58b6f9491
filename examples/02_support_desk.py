"""
Support Desk Routing
====================

Routes tickets through a handler chain whose actions are decorated:
- Short-circuiting delegation with an explicit unhandled outcome
- Logging and caching add-ons stacked around an action
"""

import logging

from compositor import CachingAddOn, DecorationStack, HandlerChain, LoggingAddOn


def escalate(ticket: str) -> str:
    """Pretend to look up the on-call engineer."""
    return f"paged on-call for {ticket!r}"


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    # Cache sits outside logging, so repeats are served without a log line
    paging = DecorationStack(escalate).push(LoggingAddOn("escalate")).push(CachingAddOn())

    chain = HandlerChain()
    chain.append(lambda t: "password" in t, lambda t: "sent reset link", name="self-service")
    chain.append(lambda t: "outage" in t, paging, name="escalation")

    for ticket in ["password expired", "outage in eu-west", "outage in eu-west", "hello"]:
        handled, result = chain.handle(ticket)
        print(f"{ticket!r}: {result if handled else 'left in queue'}")


if __name__ == "__main__":
    main()
