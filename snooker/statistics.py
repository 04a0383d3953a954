"""
Match statistics.
Read-only and replay-based: walks every frame, break and shot of a match and
accumulates per-player counters. Rates are derived on demand from the counters.
Nothing here is stored incrementally; after an undo the whole match is replayed.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from snooker.models import Break, Frame, Match, Shot, ShotKind, other_player

BREAK_THRESHOLDS = (10, 20, 30, 40, 50, 60, 70, 80, 90, 100)
CENTURY = 100


# ---------- Counters ----------


@dataclass
class BreakCounts:
    """Scoring breaks, plus how many reached each threshold (cumulative)."""
    total: int = 0
    over10: int = 0
    over20: int = 0
    over30: int = 0
    over40: int = 0
    over50: int = 0
    over60: int = 0
    over70: int = 0
    over80: int = 0
    over90: int = 0
    over100: int = 0
    century: int = 0

    def record(self, points: int) -> None:
        self.total += 1
        for threshold in BREAK_THRESHOLDS:
            if points >= threshold:
                key = f"over{threshold}"
                setattr(self, key, getattr(self, key) + 1)
        if points >= CENTURY:
            self.century += 1


@dataclass
class AttemptCounts:
    attempted: int = 0
    successful: int = 0


@dataclass
class ShotCounts:
    """Pot attempts only; safeties are not counted here."""
    total: int = 0
    potted: int = 0
    missed: int = 0


@dataclass
class BallCounts:
    attempted: int = 0
    potted: int = 0


@dataclass
class PlayerStatistics:
    frames_won: int = 0
    total_points: int = 0
    high_break: int = 0
    breaks: BreakCounts = field(default_factory=BreakCounts)
    visits: int = 0
    shots: ShotCounts = field(default_factory=ShotCounts)
    rest_shots: AttemptCounts = field(default_factory=AttemptCounts)
    safeties: AttemptCounts = field(default_factory=AttemptCounts)
    escapes: AttemptCounts = field(default_factory=AttemptCounts)
    fouls: int = 0
    total_shot_time: int = 0  # milliseconds
    ball_stats: dict[str, BallCounts] = field(default_factory=dict)


@dataclass
class MatchStatistics:
    players: list[PlayerStatistics] = field(
        default_factory=lambda: [PlayerStatistics(), PlayerStatistics()]
    )

    @property
    def player1(self) -> PlayerStatistics:
        return self.players[0]

    @property
    def player2(self) -> PlayerStatistics:
        return self.players[1]


# ---------- Replay ----------


def calculate_match_statistics(match: Match) -> MatchStatistics:
    stats = MatchStatistics()
    for frame in match.frames:
        process_frame_statistics(frame, stats)
    return stats


def process_frame_statistics(frame: Frame, stats: MatchStatistics) -> None:
    """Accumulate one frame into stats. Frame scores already include foul points."""
    if frame.winner is not None:
        stats.players[frame.winner].frames_won += 1
    stats.players[0].total_points += frame.scores[0]
    stats.players[1].total_points += frame.scores[1]

    for index, brk in enumerate(frame.breaks):
        player_stats = stats.players[brk.player]
        if brk.points > 0:
            player_stats.breaks.record(brk.points)
            player_stats.high_break = max(player_stats.high_break, brk.points)
        if brk.shots:
            player_stats.visits += 1
        for shot in brk.shots:
            _process_shot(shot, player_stats)
            if shot.is_safety and _safety_succeeded(frame.breaks, index):
                player_stats.safeties.successful += 1


def _process_shot(shot: Shot, stats: PlayerStatistics) -> None:
    if not shot.is_safety:
        stats.shots.total += 1
        if shot.potted:
            stats.shots.potted += 1
        else:
            stats.shots.missed += 1

    if shot.used_rest:
        stats.rest_shots.attempted += 1
        if shot.potted:
            stats.rest_shots.successful += 1

    if shot.is_safety:
        stats.safeties.attempted += 1

    if shot.is_escape:
        stats.escapes.attempted += 1
        if shot.potted:
            stats.escapes.successful += 1

    if shot.is_foul:
        stats.fouls += 1

    if shot.duration > 0:
        stats.total_shot_time += shot.duration

    ball = stats.ball_stats.setdefault(shot.ball, BallCounts())
    ball.attempted += 1
    if shot.potted:
        ball.potted += 1


def _safety_succeeded(breaks: list[Break], index: int) -> bool:
    """
    A safety works unless the opponent's next visit opens with a clean pot.
    No following visit, an empty one, or one opening with a foul, miss or
    safety all count as success.
    """
    opponent = other_player(breaks[index].player)
    for brk in breaks[index + 1:]:
        if brk.player != opponent:
            continue
        if not brk.shots:
            return True
        return brk.shots[0].kind != ShotKind.POT
    return True


# ---------- Derived rates ----------


def _rate(numerator: float, denominator: float, scale: float = 100.0) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator * scale, 1)


def pot_percentage(stats: PlayerStatistics) -> float:
    return _rate(stats.shots.potted, stats.shots.total)


def rest_pot_percentage(stats: PlayerStatistics) -> float:
    return _rate(stats.rest_shots.successful, stats.rest_shots.attempted)


def safety_success_rate(stats: PlayerStatistics) -> float:
    return _rate(stats.safeties.successful, stats.safeties.attempted)


def escape_success_rate(stats: PlayerStatistics) -> float:
    return _rate(stats.escapes.successful, stats.escapes.attempted)


def average_shot_time(stats: PlayerStatistics) -> float:
    """Seconds per pot attempt."""
    return _rate(stats.total_shot_time, stats.shots.total, scale=1 / 1000)


def points_per_visit(stats: PlayerStatistics) -> float:
    return _rate(stats.total_points, stats.visits, scale=1.0)


def ball_pot_percentage(ball: BallCounts | None) -> float:
    if ball is None:
        return 0.0
    return _rate(ball.potted, ball.attempted)


# ---------- Formatting ----------


def format_player_statistics(stats: PlayerStatistics) -> dict[str, Any]:
    return {
        "frames_won": stats.frames_won,
        "total_points": stats.total_points,
        "high_break": stats.high_break,
        "breaks": asdict(stats.breaks),
        "visits": stats.visits,
        "pot_percentage": pot_percentage(stats),
        "rest_pot_percentage": rest_pot_percentage(stats),
        "safety_success_rate": safety_success_rate(stats),
        "escape_success_rate": escape_success_rate(stats),
        "average_shot_time": average_shot_time(stats),
        "points_per_visit": points_per_visit(stats),
        "fouls": stats.fouls,
        "shots": asdict(stats.shots),
        "rest_shots": asdict(stats.rest_shots),
        "safeties": asdict(stats.safeties),
        "escapes": asdict(stats.escapes),
        "ball_stats": {
            ball: {
                "attempted": counts.attempted,
                "potted": counts.potted,
                "percentage": ball_pot_percentage(counts),
            }
            for ball, counts in stats.ball_stats.items()
        },
    }


def statistics_to_dict(stats: MatchStatistics) -> dict[str, Any]:
    """Shape stored on Match.statistics."""
    return {
        "player1": format_player_statistics(stats.player1),
        "player2": format_player_statistics(stats.player2),
    }


def get_frame_statistics(frame: Frame) -> dict[str, Any]:
    stats = MatchStatistics()
    process_frame_statistics(frame, stats)
    return statistics_to_dict(stats)


# ---------- Breaks and summaries ----------


def get_all_breaks(match: Match) -> list[dict[str, Any]]:
    """Every scoring break in the match, highest first. Equal breaks keep match order."""
    breaks: list[dict[str, Any]] = []
    for frame_index, frame in enumerate(match.frames):
        for brk in frame.breaks:
            if brk.points <= 0:
                continue
            breaks.append({
                "frame_number": frame_index + 1,
                "player": brk.player,
                "points": brk.points,
                "balls": list(brk.balls),
                "has_free_ball": brk.has_free_ball,
                "timestamp": brk.start_time,
            })
    # sorted() is stable
    return sorted(breaks, key=lambda b: b["points"], reverse=True)


def get_high_break(match: Match, player: int | None = None) -> dict[str, Any] | None:
    breaks = get_all_breaks(match)
    if player is not None:
        breaks = [b for b in breaks if b["player"] == player]
    return breaks[0] if breaks else None


def get_frame_summary(frame: Frame) -> dict[str, Any]:
    return {
        "number": frame.number,
        "winner": frame.winner,
        "scores": list(frame.scores),
        "duration": frame.duration,
        "break_count": len(frame.breaks),
        "high_break": max([b.points for b in frame.breaks] + [0]),
    }


def get_match_summary(match: Match) -> dict[str, Any]:
    stats = calculate_match_statistics(match)
    return {
        "players": list(match.players),
        "best_of": match.best_of,
        "frames_played": len(match.frames),
        "current_score": [
            sum(1 for f in match.frames if f.winner == 0),
            sum(1 for f in match.frames if f.winner == 1),
        ],
        "player1_stats": format_player_statistics(stats.player1),
        "player2_stats": format_player_statistics(stats.player2),
        "frames": [get_frame_summary(f) for f in match.frames],
        "all_breaks": get_all_breaks(match),
        "status": match.status,
    }
