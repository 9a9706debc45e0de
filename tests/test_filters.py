"""Unit tests for match-history filters."""

from conftest import BASE_TS, ME, make_match, make_participant
from lolboard.constants import RECENT_WINDOW_MS
from lolboard.models.player import Match
from lolboard.services.filters import MatchFilter, by_game_type

NOW = BASE_TS + RECENT_WINDOW_MS + 1000


def _match(match_id, queue_id=420, creation=NOW - 1000, **me):
    return Match.model_validate(
        make_match(match_id, me=make_participant(ME, **me), queue_id=queue_id, creation=creation)
    )


MATCHES = [
    _match("SOLO_WIN", champion="Ahri", win=True, position="MIDDLE"),
    _match("FLEX_LOSS", queue_id=440, champion="Lux", win=False, position="UTILITY"),
    _match("ARAM", queue_id=450, champion="Ahri", win=True),
    _match("OLD_DRAFT", queue_id=400, champion="Zed", win=False, creation=BASE_TS),
]


def _ids(matches):
    return [m.match_id for m in matches]


def test_empty_filter_is_inactive_and_keeps_all():
    flt = MatchFilter()
    assert not flt.active
    assert _ids(flt.apply(MATCHES, ME, NOW)) == _ids(MATCHES)


def test_result_filter():
    assert _ids(MatchFilter(result="win").apply(MATCHES, ME, NOW)) == ["SOLO_WIN", "ARAM"]
    assert _ids(MatchFilter(result="loss").apply(MATCHES, ME, NOW)) == ["FLEX_LOSS", "OLD_DRAFT"]


def test_champion_and_queue_filters_combine():
    flt = MatchFilter(champions=frozenset({"Ahri"}), queue_ids=frozenset({420}))
    assert flt.active
    assert _ids(flt.apply(MATCHES, ME, NOW)) == ["SOLO_WIN"]


def test_time_range():
    assert _ids(MatchFilter(time_range="older").apply(MATCHES, ME, NOW)) == ["OLD_DRAFT"]
    assert "OLD_DRAFT" not in _ids(MatchFilter(time_range="recent").apply(MATCHES, ME, NOW))


def test_role():
    assert _ids(MatchFilter(role="UTILITY").apply(MATCHES, ME, NOW)) == ["FLEX_LOSS"]


def test_match_without_player_is_excluded():
    stranger = Match.model_validate(make_match("X", me=make_participant("other")))
    assert MatchFilter().apply([stranger], ME, NOW) == []


def test_by_game_type():
    assert _ids(by_game_type(MATCHES, "ranked")) == ["SOLO_WIN", "FLEX_LOSS"]
    assert _ids(by_game_type(MATCHES, "normal")) == ["OLD_DRAFT"]
    assert len(by_game_type(MATCHES, "all")) == 4
