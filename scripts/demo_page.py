"""Demo script to exercise a page session end to end.

Run with:
    python3 scripts/demo_page.py

This script mounts the page's media cells against the offline mock provider,
runs the splash -> observe startup, then simulates a scroll through the
page with a console-printing visibility host. No network calls are made.
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from empire.config import Settings
from empire.services.page_session import PageSession
from empire.services.providers.mock_image import MockImageClient
from empire.services.reveal import IntersectionEntry, RevealTarget, TargetKind


class ConsoleHost:
    def observe(self, target_id, threshold):
        print(f"  observe {target_id} (threshold={threshold})")

    def unobserve(self, target_id):
        print(f"  unobserve {target_id}")

    def disconnect(self):
        print("  disconnect")


PAGE_TARGETS = [
    RevealTarget(id="hero", kind=TargetKind.STAGGERED, children=("hero-1", "hero-2", "hero-3", "hero-4")),
    RevealTarget(id="about-left", variant="reveal-left"),
    RevealTarget(id="about-right", kind=TargetKind.STAGGERED, variant="reveal-right",
                 children=("about-1", "about-2", "about-3")),
    RevealTarget(id="services", variant="reveal-scale"),
    RevealTarget(id="contact", variant="reveal-left"),
]

PAGE_CELLS = {
    "hero-bg": "Luxury gym interior",
    "about-rack": "Gym weights rack",
    "about-athlete": "Athlete training",
    "contact-map": "Abstract city map",
}


async def main():
    settings = Settings(USE_MOCK_API=True)
    session = PageSession("demo", MockImageClient(latency=0.3), ConsoleHost(), settings)
    session.coordinator.add_listener(
        lambda a: print(f"  activate {a.target_id} +{[(c.id, c.delay_ms) for c in a.children]}")
    )
    session.add_cell_listener(lambda key, snap: print(f"  cell {key}: {snap.status.value}"))

    print("--- Mounting cells and targets ---")
    cells = [session.mount_cell(key, prompt) for key, prompt in PAGE_CELLS.items()]
    for target in PAGE_TARGETS:
        session.mount_target(target)

    print(f"--- Splash ({settings.SPLASH_DURATION_MS}ms) ---")
    await session.start()
    print(f"phase: {session.startup.phase.value}")

    print("--- Scrolling ---")
    for target in PAGE_TARGETS:
        session.coordinator.handle_intersections([
            IntersectionEntry(target_id=target.id, is_intersecting=True, ratio=0.25),
        ])
        await asyncio.sleep(0.1)

    await asyncio.gather(*(c.wait_settled() for c in cells))

    print("--- Teardown ---")
    session.teardown()


if __name__ == "__main__":
    asyncio.run(main())
