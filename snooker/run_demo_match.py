"""
Play a simulated snooker match through the match controller and print the
running score after each frame, then the match statistics.
Seeded: the same seed gives the same match, shot for shot.
"""
from __future__ import annotations

import argparse
import logging
import os
import random
import sys
from pathlib import Path

# Run from project root: python -m snooker.run_demo_match
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from snooker.balls import RED
from snooker.engine import FrameClock, format_duration
from snooker.persistence import MatchStore
from snooker.services import FrameState, MatchController

# Shots per frame before the frame is called off
MAX_SHOTS_PER_FRAME = 600

POT_CHANCE = 0.72
SAFETY_CHANCE = 0.15
FOUL_CHANCE = 0.05


class SimulatedTime:
    """Millisecond time source advanced by the simulation, not the wall clock."""

    def __init__(self) -> None:
        self.now_ms = 0

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


def _play_shot(controller: MatchController, rng: random.Random, sim_time: SimulatedTime) -> None:
    sim_time.advance(rng.randint(6_000, 35_000))
    legal = controller.legal_balls()
    ball = rng.choice(legal) if legal else RED
    roll = rng.random()
    if roll < FOUL_CHANCE:
        controller.foul(
            rng.randint(4, 7),
            free_ball=rng.random() < 0.1,
            ball=ball,
        )
    elif roll < FOUL_CHANCE + SAFETY_CHANCE:
        controller.safety(ball)
    elif rng.random() < POT_CHANCE:
        controller.pot(ball, used_rest=rng.random() < 0.05)
    else:
        controller.miss(ball, used_rest=rng.random() < 0.05)


def _print_frame(controller: MatchController) -> None:
    match = controller.match
    frame = match.frame
    a, b = match.players
    won = controller.snapshot()["frames_won"]
    winner = match.players[frame.winner] if frame.winner is not None else "nobody (tied)"
    print(
        f"  Frame {frame.number}: {a} {frame.scores[0]} - {frame.scores[1]} {b}"
        f"   won by {winner}   ({format_duration(frame.duration)})   Match: {won[0]}-{won[1]}"
    )


def _print_final(controller: MatchController) -> None:
    summary = controller.view_stats()
    match = controller.match
    won = summary["current_score"]
    print()
    print("=" * 60)
    if match.winner is not None:
        print(f"  MATCH RESULT: {match.players[match.winner]} wins {won[0]}-{won[1]}")
    else:
        print(f"  MATCH UNFINISHED: {won[0]}-{won[1]}")
    print("=" * 60)
    for name, key in ((match.players[0], "player1_stats"), (match.players[1], "player2_stats")):
        s = summary[key]
        print(
            f"  {name}: points {s['total_points']}  high break {s['high_break']}  "
            f"pot {s['pot_percentage']}%  safety {s['safety_success_rate']}%  "
            f"fouls {s['fouls']}  avg shot {s['average_shot_time']}s"
        )
    top = summary["all_breaks"][:5]
    if top:
        print("  Top breaks: " + ", ".join(
            f"{b['points']} ({match.players[b['player']]}, frame {b['frame_number']})" for b in top
        ))
    print()


def run(
    seed: int | None = None,
    best_of: int = 5,
    reds: int = 15,
    db_path: Path | None = None,
    player1: str = "Player A",
    player2: str = "Player B",
) -> MatchController:
    if seed is None:
        seed = random.randint(1, 2**31 - 1)
    rng = random.Random(seed)
    sim_time = SimulatedTime()
    store = MatchStore(db_path) if db_path else None
    controller = MatchController(store=store, clock=FrameClock(time_source=sim_time))

    print(f"Seed {seed}: {player1} vs {player2}, best of {best_of}, {reds} reds")
    controller.start_match(player1, player2, best_of=best_of, reds=reds)
    while controller.state != FrameState.MATCH_COMPLETE:
        controller.start_play()
        shots = 0
        while controller.state == FrameState.IN_PLAY and shots < MAX_SHOTS_PER_FRAME:
            _play_shot(controller, rng, sim_time)
            shots += 1
        if controller.state == FrameState.IN_PLAY:
            controller.end_frame()
        _print_frame(controller)
        if controller.state == FrameState.FRAME_COMPLETE:
            controller.start_next_frame()
    _print_final(controller)
    return controller


def main() -> None:
    parser = argparse.ArgumentParser(description="Play a simulated snooker match")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed")
    parser.add_argument("--best-of", type=int, default=5, help="Frames in the match (odd)")
    parser.add_argument("--reds", type=int, default=15, help="Reds per frame")
    parser.add_argument("--db", type=Path, default=None, help="Save the match to this sqlite file")
    args = parser.parse_args()
    logging.basicConfig(
        level=os.environ.get("SNOOKER_LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    run(seed=args.seed, best_of=args.best_of, reds=args.reds, db_path=args.db)


if __name__ == "__main__":
    main()
