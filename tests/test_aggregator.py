"""
Tests for in-memory aggregation.
"""

from applens.core.aggregation import (
    AggregationMode,
    AggregationRequest,
    ChartKind,
    Reduction,
    aggregate_records,
    parse_category_limit,
    reduction_for,
    to_label,
)


def _labels(buckets):
    return [b.label for b in buckets]


def _values(buckets):
    return [b.value for b in buckets]


def test_count_is_conserved(sales_records):
    request = AggregationRequest(group_field="region")
    buckets = aggregate_records(sales_records, request, AggregationMode.CHART_BUILDER)
    assert sum(_values(buckets)) == len(sales_records)


def test_chart_builder_keeps_first_seen_order():
    records = [{"x": "b"}, {"x": "a"}, {"x": "b"}, {"x": "c"}]
    buckets = aggregate_records(records, AggregationRequest(group_field="x"), AggregationMode.CHART_BUILDER)
    assert _labels(buckets) == ["b", "a", "c"]
    assert _values(buckets) == [2, 1, 1]


def test_ranked_sorts_by_value_and_keeps_ties_stable():
    records = [{"x": "a"}, {"x": "c"}, {"x": "b"}, {"x": "b"}]
    buckets = aggregate_records(records, AggregationRequest(group_field="x"))
    assert _labels(buckets) == ["b", "a", "c"]


def test_ranked_keeps_top_fifty():
    records = [{"g": f"g{i}", "v": i} for i in range(100)]
    request = AggregationRequest(group_field="g", value_field="v")
    buckets = aggregate_records(records, request, AggregationMode.RANKED)
    assert len(buckets) == 50
    assert buckets[0].label == "g99"
    assert buckets[0].value == 99
    assert buckets[-1].label == "g50"


def test_unparseable_values_are_excluded_from_sums():
    records = [
        {"cat": "A", "amt": "10"},
        {"cat": "A", "amt": "oops"},
        {"cat": "A", "amt": "5.5kg"},
        {"cat": "A", "amt": None},
    ]
    request = AggregationRequest(group_field="cat", value_field="amt")
    buckets = aggregate_records(records, request)
    assert buckets[0].value == 15.5


def test_huge_integers_are_excluded_from_sums():
    records = [{"g": "a", "v": 10 ** 400}, {"g": "a", "v": 3}, {"g": 10 ** 400, "v": 1}]
    request = AggregationRequest(group_field="g", value_field="v")
    buckets = aggregate_records(records, request)
    assert buckets[0].label == "a"
    assert buckets[0].value == 3.0
    assert buckets[1].label == str(10 ** 400)


def test_group_with_no_numeric_values_sums_to_zero(sales_records):
    request = AggregationRequest(group_field="region", value_field="amount")
    buckets = aggregate_records(sales_records, request, AggregationMode.CHART_BUILDER)
    assert dict(zip(_labels(buckets), _values(buckets))) == {
        "North": 150.0,
        "South": 260.5,
        "East": 0.0,
    }


def test_pie_counts_even_with_value_field(sales_records):
    request = AggregationRequest(group_field="region", value_field="amount", chart_type=ChartKind.PIE)
    buckets = aggregate_records(sales_records, request)
    assert dict(zip(_labels(buckets), _values(buckets))) == {"North": 2, "South": 2, "East": 1}


def test_missing_group_values_become_unknown():
    records = [{"x": None}, {"y": 1}, {"x": "a"}]
    buckets = aggregate_records(records, AggregationRequest(group_field="x"), AggregationMode.CHART_BUILDER)
    assert _labels(buckets) == ["Unknown", "a"]
    assert _values(buckets) == [2, 1]


def test_category_limit_truncates_by_position():
    records = [{"x": label} for label in "abcdef"]
    request = AggregationRequest(group_field="x", category_limit="3")
    buckets = aggregate_records(records, request, AggregationMode.CHART_BUILDER)
    assert _labels(buckets) == ["a", "b", "c"]

    request = AggregationRequest(group_field="x", category_limit="all")
    assert len(aggregate_records(records, request, AggregationMode.CHART_BUILDER)) == 6


def test_reduction_rules():
    assert reduction_for(ChartKind.PIE, "amount") == Reduction.COUNT
    assert reduction_for(ChartKind.BAR, "amount") == Reduction.SUM
    assert reduction_for(ChartKind.LINE, None) == Reduction.COUNT
    assert reduction_for("area", "") == Reduction.COUNT


def test_labels_follow_display_conventions():
    assert to_label(None) == "Unknown"
    assert to_label(True) == "true"
    assert to_label(2.0) == "2"
    assert to_label(2.5) == "2.5"
    assert to_label(7) == "7"


def test_parse_category_limit():
    assert parse_category_limit(5) == 5
    assert parse_category_limit("7") == 7
    assert parse_category_limit("12abc") == 12
    assert parse_category_limit("all") is None
    assert parse_category_limit(0) is None
    assert parse_category_limit(None) is None
