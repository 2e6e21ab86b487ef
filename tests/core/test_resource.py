"""Tests for resource_spine.core.resource module."""

import dataclasses

import pytest

from resource_spine.core.converged import ConvergedType
from resource_spine.core.resource import ResourceDescriptor, ResourceRegistry


class TestResourceDescriptor:
    def test_table_is_last_dotted_segment(self):
        descriptor = ResourceDescriptor("app.resource.thermostat")
        assert descriptor.table == "thermostat"
        assert descriptor.primary_key == "thermostat_id"

    def test_plain_name(self):
        assert ResourceDescriptor("sensor").table == "sensor"

    def test_converged_types_are_normalized(self):
        descriptor = ResourceDescriptor("t", {"floor": "int"})
        assert descriptor.converged["floor"] is ConvergedType.INT

    def test_unknown_converged_type(self):
        with pytest.raises(ValueError):
            ResourceDescriptor("t", {"floor": "decimal"})

    def test_converged_is_read_only(self):
        descriptor = ResourceDescriptor("t", {"floor": "int"})
        with pytest.raises(TypeError):
            descriptor.converged["x"] = ConvergedType.INT

    def test_frozen(self):
        descriptor = ResourceDescriptor("t")
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.name = "u"

    def test_json_columns_become_frozenset(self):
        descriptor = ResourceDescriptor("t", json_columns={"alerts"})
        assert descriptor.json_columns == frozenset({"alerts"})


class TestResourceRegistry:
    def test_resolve_registered(self, soft_thermostat):
        registry = ResourceRegistry([soft_thermostat])
        assert registry.resolve("app.thermostat") is soft_thermostat
        assert "app.thermostat" in registry

    def test_resolve_unknown_is_bare(self):
        descriptor = ResourceRegistry().resolve("app.sensor")
        assert descriptor.table == "sensor"
        assert dict(descriptor.converged) == {}

    def test_resolve_descriptor_passthrough(self, soft_thermostat):
        assert ResourceRegistry().resolve(soft_thermostat) is soft_thermostat

    def test_register_replaces(self):
        registry = ResourceRegistry()
        registry.register(ResourceDescriptor("t", {"a": "int"}))
        registry.register(ResourceDescriptor("t", {"b": "int"}))
        assert list(registry.resolve("t").converged) == ["b"]
        assert registry.names() == ["t"]
