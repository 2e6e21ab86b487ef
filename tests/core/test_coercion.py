"""Tests for resource_spine.core.coercion module."""

from decimal import Decimal

from resource_spine.core.coercion import CoercionPlan, is_json_column, parse_json
from resource_spine.core.protocols import ColumnKind, ColumnMeta


def plan_for(*columns, json_columns=()):
    return CoercionPlan.from_columns(columns, json_columns)


class TestPlan:
    """Column metadata → coercion groups."""

    def test_tinyint_one_is_boolean(self):
        plan = plan_for(ColumnMeta("inactive", ColumnKind.TINYINT, 1))
        assert plan.boolean == ["inactive"]

    def test_wider_tinyint_stays_integer(self):
        plan = plan_for(ColumnMeta("level", ColumnKind.TINYINT, 4))
        assert plan.empty

    def test_bit_one_is_boolean(self):
        assert plan_for(ColumnMeta("flag", ColumnKind.BIT, 1)).boolean == ["flag"]

    def test_decimal_is_float(self):
        assert plan_for(ColumnMeta("price", ColumnKind.DECIMAL, 10)).floating == ["price"]

    def test_json_by_kind_prefix_converged_or_declaration(self):
        plan = plan_for(
            ColumnMeta("payload", ColumnKind.JSON),
            ColumnMeta("json_settings"),
            ColumnMeta("converged"),
            ColumnMeta("alerts"),
            ColumnMeta("name", ColumnKind.TEXT),
            json_columns={"alerts"},
        )
        assert plan.json == ["payload", "json_settings", "converged", "alerts"]

    def test_skipped_columns_are_untouched(self):
        columns = [ColumnMeta("converged", ColumnKind.JSON), ColumnMeta("json_settings")]
        plan = CoercionPlan.from_columns(columns, skip=["converged"])
        assert plan.json == ["json_settings"]
        assert plan.apply({"converged": "nickname=den"}) == {"converged": "nickname=den"}


class TestApply:
    def test_booleans(self):
        plan = plan_for(
            ColumnMeta("a", ColumnKind.TINYINT, 1),
            ColumnMeta("b", ColumnKind.BIT, 1),
        )
        row = plan.apply({"a": 1, "b": b"\x00"})
        assert row == {"a": True, "b": False}

    def test_bit_bytes_true(self):
        plan = plan_for(ColumnMeta("b", ColumnKind.BIT, 1))
        assert plan.apply({"b": b"\x01"}) == {"b": True}

    def test_decimal(self):
        plan = plan_for(ColumnMeta("price", ColumnKind.DECIMAL, 10))
        row = plan.apply({"price": Decimal("1.50")})
        assert row["price"] == 1.5
        assert isinstance(row["price"], float)

    def test_json_text(self):
        plan = plan_for(ColumnMeta("json_settings"))
        assert plan.apply({"json_settings": '{"a":[1,2]}'}) == {"json_settings": {"a": [1, 2]}}

    def test_none_is_untouched(self):
        plan = plan_for(
            ColumnMeta("a", ColumnKind.TINYINT, 1),
            ColumnMeta("price", ColumnKind.DECIMAL),
            ColumnMeta("json_x"),
        )
        assert plan.apply({"a": None, "price": None, "json_x": None}) == {
            "a": None,
            "price": None,
            "json_x": None,
        }

    def test_unparseable_json_becomes_none(self):
        plan = plan_for(ColumnMeta("json_x"))
        assert plan.apply({"json_x": "{not json"}) == {"json_x": None}

    def test_other_columns_pass_through(self):
        plan = plan_for(ColumnMeta("name"))
        assert plan.apply({"name": "Hall", "extra": 1}) == {"name": "Hall", "extra": 1}


class TestHelpers:
    def test_is_json_column(self):
        assert is_json_column("json_meta")
        assert is_json_column("converged")
        assert not is_json_column("jsonish")

    def test_parse_json_passes_decoded_values(self):
        assert parse_json("payload", {"a": 1}) == {"a": 1}
