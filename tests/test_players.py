"""Tests for player registration, payments and group assignment."""

import pytest

from ttdraw.exceptions import InvalidInputError, NotFoundError
from ttdraw.players import (
    approve_player,
    assign_groups,
    available_for_grouping,
    grouped_players,
    list_unpaid,
    parse_seed_rank,
    register_player,
    search_payments,
)


def test_register_player(player_repo):
    player = register_player(player_repo, " Ana ", "Ruiz", "U18", affiliation="Club Norte", seed_rank="2")

    assert player.id > 0
    assert player.firstname == "Ana"
    assert player.seed_rank == 2
    assert player.affiliation == "Club Norte"
    assert player.is_paid is False
    assert player.group_name is None


def test_register_with_none_markers(player_repo):
    player = register_player(player_repo, "Ana", "Ruiz", "U18", affiliation="-", seed_rank="-")

    assert player.affiliation is None
    assert player.seed_rank is None


@pytest.mark.parametrize("firstname,lastname,category", [("", "Ruiz", "U18"), ("Ana", "  ", "U18"), ("Ana", "Ruiz", "")])
def test_register_missing_field(player_repo, firstname, lastname, category):
    with pytest.raises(InvalidInputError):
        register_player(player_repo, firstname, lastname, category)


@pytest.mark.parametrize("value,expected", [("3", 3), (5, 5), (None, None), ("", None), ("-", None)])
def test_parse_seed_rank(value, expected):
    assert parse_seed_rank(value) == expected


@pytest.mark.parametrize("value", ["abc", "0", -1, "1.5"])
def test_parse_seed_rank_invalid(value):
    with pytest.raises(InvalidInputError):
        parse_seed_rank(value)


def test_approve_and_unpaid_list(player_repo):
    ana = register_player(player_repo, "Ana", "Ruiz", "U18")
    ben = register_player(player_repo, "Ben", "Soto", "U18")

    approve_player(player_repo, ana.id)

    assert [p.id for p in list_unpaid(player_repo)] == [ben.id]
    assert player_repo.get_by_id(ana.id).is_paid is True


def test_approve_unknown_player(player_repo):
    with pytest.raises(NotFoundError):
        approve_player(player_repo, 404)


def test_search_payments(player_repo, make_player):
    make_player("Ana", is_paid=True)
    make_player("Anabel", is_paid=False)
    make_player("Ben")

    results = search_payments(player_repo, "ana")

    assert results == [
        {"firstname": "Ana", "lastname": "Test", "is_paid": True},
        {"firstname": "Anabel", "lastname": "Test", "is_paid": False},
    ]
    assert search_payments(player_repo, "  ") == []
    # Last names match too
    assert len(search_payments(player_repo, "TEST")) == 3


def test_grouping_flow(player_repo, make_player):
    ana = make_player("Ana")
    ben = make_player("Ben")
    cal = make_player("Cal", category="U21")
    make_player("Unpaid", is_paid=False)

    assert [p.id for p in available_for_grouping(player_repo)] == [ana.id, ben.id, cal.id]

    assign_groups(player_repo, [(ana.id, "A"), (ben.id, "B"), (cal.id, "A")])

    assert available_for_grouping(player_repo) == []
    groups = grouped_players(player_repo)
    assert set(groups.keys()) == {"U18", "U21"}
    assert [p.id for p in groups["U18"]["A"]] == [ana.id]
    assert [p.id for p in groups["U18"]["B"]] == [ben.id]
    assert [p.id for p in groups["U21"]["A"]] == [cal.id]


def test_assign_unknown_player(player_repo):
    with pytest.raises(NotFoundError):
        assign_groups(player_repo, [(404, "A")])


def test_assign_empty_group_name(player_repo, make_player):
    ana = make_player("Ana")

    with pytest.raises(InvalidInputError):
        assign_groups(player_repo, [(ana.id, " ")])
