"""Simple entrypoint to run the SwipeShop taste engine locally."""

import asyncio
import json

from swipe_app.app import SwipeShopApp


async def _demo() -> None:
    app = SwipeShopApp()
    app.start_session("demo-user")
    app.set_interests("demo-user", ["rugs", "lighting", "plants"])
    await app.load_feed("demo-user")

    app.decide("demo-user", "pass")
    app.decide("demo-user", "like", "save")
    analysis, picks = await app.scan("demo-user", text="cozy bedroom, needs storage, no clutter")

    print(analysis.summary)
    for pick in picks:
        print(f"- {pick.item.name}: {' '.join(pick.rationale)}")
    print(json.dumps(app.persona("demo-user").to_dict(), indent=2))


def main() -> None:
    asyncio.run(_demo())


if __name__ == "__main__":
    main()
