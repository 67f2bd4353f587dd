"""
Random Walk - collect and deposit tokens on the grid
====================================================

WHAT THIS SHOWS:
- GridIndex neighborhoods around a moving player
- Pits generated on first visit, re-hydrated after scrolling out of view
- Collect/deposit moving tokens between pits and the player's stack
- Session persisted between runs with JsonPersistence

RUN:
    python -m examples.walk.run --steps 30 --seed 7
    python -m examples.walk.run --reset
"""

import argparse
import asyncio
import random

from geopits import JsonPersistence, WorldController, render_ascii_window
from geopits.config import Config
from geopits.logging_utils import LogKind, colored

DIRECTIONS = {
    "north": (1, 0),
    "south": (-1, 0),
    "east": (0, 1),
    "west": (0, -1),
}


def render(controller: WorldController, radius: int) -> str:
    world = controller.visible
    if world is None:
        return ""
    pits = {pit.cell: pit.value for pit in world.pits}
    return render_ascii_window(
        controller.grid,
        world.player_cell,
        radius=radius,
        pits=pits,
        player=world.player_cell,
    )


def act(controller: WorldController, rng: random.Random) -> str | None:
    """Collect from or deposit into the pit under the player, if any."""
    world = controller.visible
    pit = world.pit_at(world.player_cell) if world else None
    if pit is None:
        return None

    if pit.value and (not controller.points or rng.random() < 0.7):
        token = controller.collect(pit.cell)
        return f"collected {token.label} at {pit.label}"

    token = controller.deposit(pit.cell)
    if token is not None:
        return f"deposited {token.label} at {pit.label}"
    return None


async def main() -> None:
    parser = argparse.ArgumentParser(description="Random walk through geopits")
    parser.add_argument("--steps", type=int, default=20, help="Number of moves")
    parser.add_argument("--seed", type=int, default=0, help="Seed for the walk (not the world)")
    parser.add_argument("--radius", type=int, default=4, help="Radius of the printed map window")
    parser.add_argument("--save-dir", default=str(Config.SAVE_DIR), help="Session directory")
    parser.add_argument("--reset", action="store_true", help="Erase the saved session first")
    parser.add_argument("--quiet", action="store_true", help="Only print the final summary")
    args = parser.parse_args()

    print(Config.display())
    controller = WorldController.from_config()
    persistence = JsonPersistence(args.save_dir)
    await persistence.initialize()

    if args.reset:
        await controller.reset_session(persistence)
    else:
        await controller.load_session(persistence)

    rng = random.Random(args.seed)
    for step in range(1, args.steps + 1):
        direction = rng.choice(sorted(DIRECTIONS))
        controller.step(*DIRECTIONS[direction])
        outcome = act(controller, rng)

        if not args.quiet:
            print(colored(f"\n=== Step {step}: {direction} ===", LogKind.INFO))
            print(render(controller, args.radius))
            if outcome:
                print(colored(outcome, LogKind.SUCCESS))
            print(controller.status_text())

    await controller.save_session(persistence)
    await persistence.close()
    print(colored(f"\nFinal: {controller.status_text()}", LogKind.SUCCESS))


if __name__ == "__main__":
    asyncio.run(main())
