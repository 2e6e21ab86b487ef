"""Tests for resource_spine.core.converged module."""

import pytest

from resource_spine.core.converged import (
    ConvergedType,
    coerce_converged,
    decode_converged,
    encode_converged,
    expand_converged,
    merge_converged,
)
from resource_spine.core.errors import (
    ConvergedColumnCollisionError,
    InvalidConvergedValueError,
)

SPEC = {
    "nickname": ConvergedType.STRING,
    "floor": ConvergedType.INT,
    "setpoint": ConvergedType.FLOAT,
}


class TestCoerce:
    """Declared soft-column types."""

    @pytest.mark.parametrize(
        "declared, value, expected",
        [
            ("int", "3", 3),
            ("int", " 3 ", 3),
            ("int", "3.9", 3),
            ("int", 4.2, 4),
            ("int", True, 1),
            ("float", "21.5", 21.5),
            ("float", 21, 21.0),
            ("string", 5, "5"),
            ("string", True, "1"),
            ("string", False, "0"),
            ("string", "den", "den"),
        ],
    )
    def test_coercion(self, declared, value, expected):
        result = coerce_converged("c", declared, value)
        assert result == expected
        assert type(result) is type(expected)

    @pytest.mark.parametrize(
        "declared, value",
        [
            ("int", "abc"),
            ("float", "warm"),
            ("int", float("inf")),
            ("string", {"a": 1}),
            ("int", [1]),
        ],
    )
    def test_invalid_values(self, declared, value):
        with pytest.raises(InvalidConvergedValueError) as exc_info:
            coerce_converged("floor", declared, value)
        assert exc_info.value.field == "floor"


class TestMerge:
    def test_create_collects_soft_values(self):
        physical, converged = merge_converged(SPEC, None, {"name": "Hall", "floor": "2"})
        assert physical == {"name": "Hall"}
        assert converged == {"floor": 2}

    def test_incoming_overlays_existing(self):
        existing = {"thermostat_id": 1, "nickname": "den", "floor": 1, "setpoint": None}
        physical, converged = merge_converged(SPEC, existing, {"floor": 3})
        assert physical == {}
        assert converged == {"nickname": "den", "floor": 3}

    def test_none_removes_key(self):
        existing = {"nickname": "den", "floor": 1}
        _, converged = merge_converged(SPEC, existing, {"nickname": None})
        assert converged == {"floor": 1}

    def test_undeclared_keys_stay_physical(self):
        physical, converged = merge_converged(SPEC, {}, {"alerts": [], "name": "x"})
        assert physical == {"alerts": [], "name": "x"}
        assert converged == {}

    def test_input_is_not_mutated(self):
        attributes = {"floor": "2"}
        merge_converged(SPEC, None, attributes)
        assert attributes == {"floor": "2"}


class TestExpand:
    def test_blob_is_expanded(self):
        row = {"thermostat_id": 1, "converged": {"nickname": "den", "floor": 2}}
        assert expand_converged(SPEC, row) == {
            "thermostat_id": 1,
            "nickname": "den",
            "floor": 2,
            "setpoint": None,
        }

    def test_text_blob_is_decoded(self):
        row = {"converged": '{"setpoint":20.5}'}
        assert expand_converged(SPEC, row) == {"nickname": None, "floor": None, "setpoint": 20.5}

    def test_null_blob(self):
        row = {"converged": None}
        assert expand_converged(SPEC, row) == {"nickname": None, "floor": None, "setpoint": None}

    def test_undecodable_blob_reads_as_empty(self):
        row = {"converged": "{floor"}
        assert expand_converged(SPEC, row) == {"nickname": None, "floor": None, "setpoint": None}

    def test_collision_with_physical_column(self):
        row = {"nickname": "physical", "converged": "{}"}
        with pytest.raises(ConvergedColumnCollisionError) as exc_info:
            expand_converged(SPEC, row)
        assert exc_info.value.context.identifier == "nickname"

    def test_no_spec_leaves_row_alone(self):
        row = {"converged": {"a": 1}}
        assert expand_converged({}, row) == {"converged": {"a": 1}}

    def test_projection_without_converged_column(self):
        row = {"thermostat_id": 1}
        assert expand_converged(SPEC, row) == {"thermostat_id": 1}

    def test_custom_codec(self):
        class PipeCodec:
            def encode(self, converged):
                return "|".join(f"{k}={v}" for k, v in converged.items())

            def decode(self, blob):
                return dict(part.split("=", 1) for part in blob.split("|") if part)

        codec = PipeCodec()
        blob = encode_converged({"nickname": "den"}, codec)
        assert blob == "nickname=den"
        row = expand_converged({"nickname": ConvergedType.STRING}, {"converged": blob}, codec)
        assert row == {"nickname": "den"}


class TestCodec:
    def test_default_codec_is_compact_json(self):
        assert encode_converged({"floor": 2, "nickname": "den"}) == '{"floor":2,"nickname":"den"}'
        assert decode_converged('{"floor":2}') == {"floor": 2}
