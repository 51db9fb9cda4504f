"""Sources of per-match player statistics used when a round is scored."""

from __future__ import annotations

from typing import Iterable, List, Protocol

from pyleague.models import MatchStat
from pyleague.persistence import LeagueStore


class MatchStatProvider(Protocol):
    def stats_for_round(self, round_id: int, player_ids: Iterable[int]) -> List[MatchStat]:
        ...


class StoreMatchStatProvider:
    """Reads stat lines recorded through ``LeagueStore.record_match_stat``."""

    def __init__(self, store: LeagueStore):
        self._store = store

    def stats_for_round(self, round_id: int, player_ids: Iterable[int]) -> List[MatchStat]:
        return self._store.match_stats_for_round(round_id, player_ids)


class StaticMatchStatProvider:
    """In-memory provider for imports and tests."""

    def __init__(self, stats: Iterable[MatchStat]):
        self._stats = list(stats)

    def stats_for_round(self, round_id: int, player_ids: Iterable[int]) -> List[MatchStat]:
        wanted = set(player_ids)
        return [stat for stat in self._stats if stat.round_id == round_id and stat.player_id in wanted]


__all__ = ["MatchStatProvider", "StaticMatchStatProvider", "StoreMatchStatProvider"]
