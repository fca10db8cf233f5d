"""Filter rows to predicate: operator legality, parsing and date windows."""

import uuid
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from crm.app.schemas.analytics import DateRange, FilterableField, FilterRow
from crm.app.services.filters.compiler import Condition, compile_filters

NOW = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)
UTC = timezone.utc


def _row(field, operator, value=None, value2=None, row_id="r"):
    return FilterRow(id=row_id, field=field, operator=operator, value=value, value2=value2)


def _compile(*rows, tz=UTC, **kwargs):
    return compile_filters(list(rows), now=NOW, tz=tz, **kwargs)


class TestOperatorLegality:
    def test_gt_on_enum_is_dropped(self):
        predicate = _compile(_row("status", "gt", "NEW", row_id="x"))
        assert predicate.conditions == ()
        assert predicate.skipped == ("x",)
        assert not predicate

    def test_contains_on_number_is_dropped(self):
        assert _compile(_row("score", "contains", "5")).conditions == ()

    def test_unknown_operator_is_dropped(self):
        assert _compile(_row("tags", "regex", ".*")).conditions == ()

    def test_empty_rows_match_everything(self):
        predicate = _compile()
        assert predicate.conditions == ()
        assert predicate.skipped == ()


class TestEnumAndString:
    def test_in_splits_comma_list(self):
        predicate = _compile(_row("status", "in", " NEW , CONVERTED,,"))
        assert predicate.conditions == (Condition(FilterableField.STATUS, "in", ("NEW", "CONVERTED")),)

    def test_in_drops_unknown_options(self):
        predicate = _compile(_row("source", "in", "quiz,carrier-pigeon"))
        assert predicate.conditions == (Condition(FilterableField.SOURCE, "in", ("quiz",)),)

    def test_in_with_only_unknown_options_is_dropped(self):
        assert _compile(_row("source", "in", "fax")).conditions == ()

    def test_in_with_blank_value_is_dropped(self):
        assert _compile(_row("status", "in", "")).conditions == ()

    def test_equals_unknown_option_is_dropped(self):
        assert _compile(_row("deal.stage", "equals", "WON")).conditions == ()

    def test_string_operators(self):
        predicate = _compile(
            _row("tags", "contains", "vip", row_id="a"),
            _row("tags", "startsWith", "hot", row_id="b"),
            _row("tags", "equals", "cold", row_id="c"),
        )
        assert [c.op for c in predicate.conditions] == ["contains", "startswith", "eq"]

    def test_blank_string_value_is_dropped(self):
        assert _compile(_row("tags", "contains", "  ")).conditions == ()


class TestNumbers:
    def test_comparisons(self):
        predicate = _compile(
            _row("score", "gte", "50", row_id="a"),
            _row("deal.value", "lt", "1000.5", row_id="b"),
            _row("score", "equals", "70", row_id="c"),
        )
        assert predicate.conditions == (
            Condition(FilterableField.SCORE, "gte", 50.0),
            Condition(FilterableField.DEAL_VALUE, "lt", 1000.5),
            Condition(FilterableField.SCORE, "eq", 70.0),
        )

    def test_non_numeric_value_is_dropped(self):
        assert _compile(_row("score", "gt", "lots")).conditions == ()

    def test_non_finite_value_is_dropped(self):
        assert _compile(_row("score", "gt", "nan")).conditions == ()
        assert _compile(_row("score", "lt", "inf")).conditions == ()

    def test_between_is_inclusive_range(self):
        predicate = _compile(_row("score", "between", "10", "90"))
        assert predicate.conditions == (Condition(FilterableField.SCORE, "between", (10.0, 90.0)),)

    def test_between_missing_upper_bound_is_ignored(self):
        predicate = _compile(_row("score", "between", "10", None, row_id="half"))
        assert predicate.conditions == ()
        assert predicate.skipped == ("half",)

    def test_between_missing_lower_bound_is_ignored(self):
        assert _compile(_row("deal.value", "between", None, "500")).conditions == ()


class TestDates:
    def test_after_and_before(self):
        predicate = _compile(
            _row("createdAt", "after", "2026-01-01", row_id="a"),
            _row("convertedAt", "before", "2026-01-10T12:00:00+02:00", row_id="b"),
        )
        assert predicate.conditions == (
            Condition(FilterableField.CREATED_AT, "gte", datetime(2026, 1, 1, tzinfo=UTC)),
            Condition(FilterableField.CONVERTED_AT, "lte", datetime(2026, 1, 10, 10, tzinfo=UTC)),
        )

    def test_naive_dates_read_in_configured_zone(self):
        predicate = _compile(_row("createdAt", "after", "2026-01-01"), tz=ZoneInfo("Europe/Berlin"))
        assert predicate.conditions[0].value == datetime(2025, 12, 31, 23, tzinfo=UTC)

    def test_utc_designator_suffix(self):
        predicate = _compile(_row("createdAt", "after", "2026-01-01T00:00:00.000Z"))
        assert predicate.conditions == (Condition(FilterableField.CREATED_AT, "gte", datetime(2026, 1, 1, tzinfo=UTC)),)

    def test_unparseable_date_is_dropped(self):
        assert _compile(_row("createdAt", "after", "yesterday")).conditions == ()

    def test_between_dates(self):
        predicate = _compile(_row("deal.closedAt", "between", "2026-01-01", "2026-01-31"))
        assert predicate.conditions == (
            Condition(
                FilterableField.DEAL_CLOSED_AT,
                "between",
                (datetime(2026, 1, 1, tzinfo=UTC), datetime(2026, 1, 31, tzinfo=UTC)),
            ),
        )

    def test_between_dates_missing_bound_is_ignored(self):
        assert _compile(_row("createdAt", "between", "2026-01-01")).conditions == ()

    def test_rolling_presets_ignore_values(self):
        predicate = _compile(
            _row("createdAt", "last7days", "garbage", "more", row_id="a"),
            _row("createdAt", "last30days", row_id="b"),
        )
        assert predicate.conditions == (
            Condition(FilterableField.CREATED_AT, "between", (datetime(2026, 1, 8, 10, 30, tzinfo=UTC), NOW)),
            Condition(FilterableField.CREATED_AT, "between", (datetime(2025, 12, 16, 10, 30, tzinfo=UTC), NOW)),
        )

    def test_calendar_presets_use_configured_zone(self):
        berlin = ZoneInfo("Europe/Berlin")
        predicate = _compile(
            _row("createdAt", "thisMonth", row_id="a"),
            _row("createdAt", "thisYear", row_id="b"),
            tz=berlin,
        )
        month, year = predicate.conditions
        assert month.value == (datetime(2025, 12, 31, 23, tzinfo=UTC), NOW)
        assert year.value == (datetime(2025, 12, 31, 23, tzinfo=UTC), NOW)

    def test_this_month_in_utc(self):
        predicate = compile_filters(
            [_row("createdAt", "thisMonth")], now=datetime(2026, 3, 20, 8, tzinfo=UTC), tz=UTC
        )
        assert predicate.conditions[0].value[0] == datetime(2026, 3, 1, tzinfo=UTC)


class TestRelationAndRange:
    def test_relation_requires_uuid(self):
        user_id = uuid.uuid4()
        predicate = _compile(_row("assignedToId", "equals", str(user_id), row_id="a"), _row("assignedToId", "equals", "bob", row_id="b"))
        assert predicate.conditions == (Condition(FilterableField.ASSIGNED_TO_ID, "eq", user_id),)
        assert predicate.skipped == ("b",)

    def test_date_range_adds_created_bounds(self):
        date_range = DateRange(from_=datetime(2026, 1, 1), to=datetime(2026, 1, 31, tzinfo=UTC))
        predicate = _compile(date_range=date_range)
        assert predicate.conditions == (
            Condition(FilterableField.CREATED_AT, "gte", datetime(2026, 1, 1, tzinfo=UTC)),
            Condition(FilterableField.CREATED_AT, "lte", datetime(2026, 1, 31, tzinfo=UTC)),
        )

    def test_deal_conditions_are_split_out(self):
        predicate = _compile(_row("deal.stage", "equals", "CLOSED_WON", row_id="a"), _row("score", "gt", "5", row_id="b"))
        assert [c.field for c in predicate.deal_conditions] == [FilterableField.DEAL_STAGE]
        assert [c.field for c in predicate.lead_conditions] == [FilterableField.SCORE]
