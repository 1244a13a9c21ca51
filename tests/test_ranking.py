"""Tests for competition ranking within partitions."""

from decimal import Decimal

import pytest

from retail_core.aggregate import AggregateResult, AggregateTable, aggregate
from retail_core.ranking import RankedTable, rank_within_partition, top_k
from tests.test_utils import make_record


def _row(branch: str, category: str, score) -> AggregateResult:
    return AggregateResult(
        dimensions=("branch", "category"),
        key=(branch, category),
        metrics={"score": Decimal(score)},
    )


@pytest.fixture
def tied_rows() -> list[AggregateResult]:
    """Branch X has a two-way tie at the top; branch Y has one row."""
    return [
        _row("X", "d", 1),
        _row("X", "b", 5),
        _row("X", "c", 3),
        _row("X", "a", 5),
        _row("Y", "a", 2),
    ]


def test_cash_outranks_card_within_branch() -> None:
    records = [
        make_record(branch="A", payment_method="Cash", total=Decimal("10")),
        make_record(branch="A", payment_method="Cash", total=Decimal("20")),
        make_record(branch="A", payment_method="Card", total=Decimal("5")),
    ]
    table = aggregate(records, ["branch", "payment_method"], {"revenue": ("total", "sum")})

    ranked = rank_within_partition(table, "branch", "revenue", "desc")

    assert [(r["payment_method"], r.rank) for r in ranked] == [("Cash", 1), ("Card", 2)]


def test_ties_share_rank_and_next_rank_skips(tied_rows: list) -> None:
    ranked = rank_within_partition(tied_rows, "branch", "score")

    x = [(r["category"], r.rank) for r in ranked if r["branch"] == "X"]
    assert x == [("a", 1), ("b", 1), ("c", 3), ("d", 4)]


def test_rank_is_one_plus_strictly_better(tied_rows: list) -> None:
    ranked = rank_within_partition(tied_rows, "branch", "score")

    for r in ranked:
        same_partition = [o for o in ranked if o["branch"] == r["branch"]]
        better = sum(1 for o in same_partition if o["score"] > r["score"])
        assert r.rank == 1 + better


def test_ascending_direction(tied_rows: list) -> None:
    ranked = rank_within_partition(tied_rows, "branch", "score", direction="asc")

    x = [(r["category"], r.rank) for r in ranked if r["branch"] == "X"]
    assert x == [("d", 1), ("c", 2), ("a", 3), ("b", 3)]


def test_single_row_partition_is_rank_one(tied_rows: list) -> None:
    ranked = rank_within_partition(tied_rows, "branch", "score")

    y = [r for r in ranked if r["branch"] == "Y"]
    assert len(y) == 1
    assert y[0].rank == 1


def test_output_is_ordered_by_partition_then_rank(tied_rows: list) -> None:
    ranked = rank_within_partition(tied_rows, "branch", "score")

    assert [(r["branch"], r.rank) for r in ranked] == [
        ("X", 1),
        ("X", 1),
        ("X", 3),
        ("X", 4),
        ("Y", 1),
    ]


def test_top_1_keeps_all_tied_leaders(tied_rows: list) -> None:
    top = top_k(rank_within_partition(tied_rows, "branch", "score"), 1)

    assert [r.key for r in top] == [("X", "a"), ("X", "b"), ("Y", "a")]


def test_top_k_two_includes_rank_ties_at_cutoff() -> None:
    rows = [_row("X", "a", 9), _row("X", "b", 7), _row("X", "c", 7), _row("X", "d", 1)]

    top = top_k(rank_within_partition(rows, "branch", "score"), 2)

    assert [r.key[1] for r in top] == ["a", "b", "c"]


def test_reranking_top_1_is_idempotent(tied_rows: list) -> None:
    top = top_k(rank_within_partition(tied_rows, "branch", "score"), 1)

    reranked = rank_within_partition(top, "branch", "score")

    assert len(reranked) == len(top)
    assert all(r.rank == 1 for r in reranked)


def test_no_partition_ranks_everything_together(tied_rows: list) -> None:
    ranked = rank_within_partition(tied_rows, None, "score")

    assert [r.rank for r in ranked] == [1, 1, 3, 4, 5]


def test_excluded_count_is_carried_through() -> None:
    table = AggregateTable([_row("X", "a", 1)], ("branch", "category"), ("score",), excluded=3)

    ranked = rank_within_partition(table, "branch", "score")
    top = top_k(ranked, 1)

    assert isinstance(ranked, RankedTable)
    assert ranked.excluded == 3
    assert top.excluded == 3


def test_table_shape_survives_empty_ranking() -> None:
    table = AggregateTable([], ("branch", "category"), ("score",))

    top = top_k(rank_within_partition(table, "branch", "score"), 1)

    assert len(top) == 0
    assert top.dimensions == ("branch", "category")
    assert top.metric_names == ("score",)


def test_ranked_row_exposes_fields(tied_rows: list) -> None:
    first = rank_within_partition(tied_rows, "branch", "score")[0]

    assert first["rank"] == 1
    assert first.as_dict() == {"branch": "X", "category": "a", "score": Decimal(5), "rank": 1}


def test_empty_input() -> None:
    assert list(rank_within_partition([], "branch", "score")) == []


def test_invalid_direction_raises(tied_rows: list) -> None:
    with pytest.raises(ValueError, match="Invalid direction"):
        rank_within_partition(tied_rows, "branch", "score", direction="down")


def test_top_k_requires_positive_k(tied_rows: list) -> None:
    with pytest.raises(ValueError, match="k must be >= 1"):
        top_k(rank_within_partition(tied_rows, "branch", "score"), 0)


def test_unknown_metric_raises(tied_rows: list) -> None:
    with pytest.raises(KeyError):
        rank_within_partition(tied_rows, "branch", "revenue")
