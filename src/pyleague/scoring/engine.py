"""Convert per-match statistics into per-round fantasy points."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Mapping, Sequence

from pyleague.config import DEFAULT_SCORING, ScoringRules
from pyleague.models import (
    CaptainType,
    FantasyTeam,
    LineupEntry,
    MatchStat,
    Player,
    PlayerRoundScore,
    Position,
    TeamScoreCard,
)


logger = logging.getLogger(__name__)


def match_points(stat: MatchStat, position: Position, rules: ScoringRules = DEFAULT_SCORING) -> int:
    """Points for a single stat line before any captain multiplier."""

    points = stat.goals * rules.goal
    points += stat.assists * rules.assist
    if stat.minutes_played > 0:
        points += rules.appearance
    points += stat.yellow_cards * rules.yellow_card
    points += stat.red_cards * rules.red_card
    if stat.clean_sheet and position.value in rules.clean_sheet_positions:
        points += rules.clean_sheet
    points += stat.penalty_saves * rules.penalty_save
    points += stat.bonus_points
    return points


def multiplier_for(captain_type: CaptainType, rules: ScoringRules = DEFAULT_SCORING) -> int:
    if captain_type is CaptainType.TRIPLE_CAPTAIN:
        return rules.triple_captain_multiplier
    if captain_type is CaptainType.CAPTAIN:
        return rules.captain_multiplier
    return 1


def group_stats(stats: Iterable[MatchStat]) -> dict[int, list[MatchStat]]:
    grouped: dict[int, list[MatchStat]] = defaultdict(list)
    for stat in stats:
        grouped[stat.player_id].append(stat)
    for rows in grouped.values():
        rows.sort(key=lambda row: row.match_id)
    return grouped


def score_team(
    team: FantasyTeam,
    round_id: int,
    stats: Iterable[MatchStat],
    catalogue: Mapping[int, Player],
    rules: ScoringRules = DEFAULT_SCORING,
) -> TeamScoreCard:
    """Score the starters of ``team`` for one round.

    Substitutes are snapshotted but never scored. A starter without stats
    scores zero and is reported in ``missing_player_ids``.
    """

    by_player = group_stats(stat for stat in stats if stat.round_id == round_id)
    scores: list[PlayerRoundScore] = []
    lineup: list[LineupEntry] = []
    missing: list[int] = []

    for slot in sorted(team.roster, key=lambda item: item.slot_index):
        player = catalogue.get(slot.player_id)
        if player is None:
            raise KeyError(f"Player {slot.player_id} missing from league catalogue")
        captain_type = team.captain_type_of(slot.slot_index)
        lineup.append(
            LineupEntry(
                fantasy_team_id=team.team_id,
                round_id=round_id,
                slot_index=slot.slot_index,
                player_id=slot.player_id,
                position=player.position.value,
                real_team_id=player.real_team_id,
                is_starter=slot.is_starter,
                captain_type=captain_type,
            )
        )
        if not slot.is_starter:
            continue

        rows = by_player.get(slot.player_id)
        if not rows:
            missing.append(slot.player_id)
            logger.warning(
                "No match stats for player %s (team %s, round %s); scoring 0",
                slot.player_id,
                team.team_id,
                round_id,
            )
            base = 0
        else:
            base = sum(match_points(row, player.position, rules) for row in rows)
        multiplier = multiplier_for(captain_type, rules)
        scores.append(
            PlayerRoundScore(
                fantasy_team_id=team.team_id,
                round_id=round_id,
                player_id=slot.player_id,
                base_points=base,
                multiplier=multiplier,
                points=base * multiplier,
            )
        )

    return TeamScoreCard(
        fantasy_team_id=team.team_id,
        round_id=round_id,
        scores=tuple(scores),
        lineup=tuple(lineup),
        missing_player_ids=tuple(missing),
    )


def player_totals(stats: Sequence[MatchStat], catalogue: Mapping[int, Player], rules: ScoringRules = DEFAULT_SCORING) -> dict[int, int]:
    """Raw points per player across any set of matches, ignoring rosters."""

    totals: dict[int, int] = defaultdict(int)
    for stat in stats:
        player = catalogue.get(stat.player_id)
        if player is None:
            continue
        totals[stat.player_id] += match_points(stat, player.position, rules)
    return dict(totals)
