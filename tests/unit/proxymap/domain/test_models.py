"""Unit tests for domain models."""

import pytest
from pydantic import ValidationError

from proxymap.domain.enums import ProviderKind, RetentionType
from proxymap.domain.models import (
    AdaptsMarker,
    FieldMarker,
    MappingDocument,
    MemberDescriptor,
    ProviderDescriptor,
    RenameEntry,
)


class TestMemberDescriptor:
    """Test cases for MemberDescriptor."""

    def test_equal_descriptors(self):
        """Test that descriptors with equal name and parameters are equal."""
        first = MemberDescriptor(name="method", parameter_types=(int, str))
        second = MemberDescriptor(name="method", parameter_types=(int, str))
        assert first == second
        assert hash(first) == hash(second)

    def test_parameter_order_matters(self):
        """Test that parameter order is part of the identity."""
        first = MemberDescriptor(name="method", parameter_types=(int, str))
        second = MemberDescriptor(name="method", parameter_types=(str, int))
        assert first != second

    def test_name_matters(self):
        """Test that the name is part of the identity."""
        assert MemberDescriptor(name="a") != MemberDescriptor(name="b")

    def test_usable_as_key(self):
        """Test that descriptors work as dictionary keys."""
        cache = {MemberDescriptor(name="method", parameter_types=(int,)): "found"}
        assert cache[MemberDescriptor(name="method", parameter_types=(int,))] == "found"

    def test_str(self):
        """Test the signature-like string form."""
        assert str(MemberDescriptor(name="method", parameter_types=(int, str))) == "method(int, str)"
        assert str(MemberDescriptor(name="method")) == "method()"

    def test_frozen(self):
        """Test that descriptors are immutable."""
        descriptor = MemberDescriptor(name="method")
        with pytest.raises(ValidationError):
            descriptor.name = "other"


class TestRenameEntry:
    """Test cases for RenameEntry."""

    def test_document_keys(self):
        """Test parsing with the mapping document keys."""
        entry = RenameEntry.model_validate({"method": "health", "original": "a"})
        assert entry.logical_name == "health"
        assert entry.real_name == "a"

    def test_field_names(self):
        """Test construction with the field names."""
        entry = RenameEntry(logical_name="health", real_name="a")
        assert entry.logical_name == "health"
        assert entry.real_name == "a"

    def test_camel_case_keys(self):
        """Test parsing with camelCase keys."""
        entry = RenameEntry.model_validate({"logicalName": "health", "realName": "a"})
        assert entry.real_name == "a"

    def test_missing_real_name(self):
        """Test that both names are required."""
        with pytest.raises(ValidationError):
            RenameEntry.model_validate({"method": "health"})


class TestProviderDescriptor:
    """Test cases for ProviderDescriptor."""

    def test_defaults(self):
        """Test that a value descriptor defaults to cached retention."""
        descriptor = ProviderDescriptor.model_validate({"value": "v1"})
        assert descriptor.kind == ProviderKind.VALUE
        assert descriptor.retention == RetentionType.CACHED
        assert descriptor.params == []
        assert descriptor.arguments == []

    def test_registered(self):
        """Test parsing a registered provider with lazy retention."""
        descriptor = ProviderDescriptor.model_validate(
            {"type": "registered", "value": "version", "retention": "lazy"}
        )
        assert descriptor.kind == ProviderKind.REGISTERED
        assert descriptor.retention == RetentionType.LAZY

    def test_static(self):
        """Test parsing a static call provider."""
        descriptor = ProviderDescriptor.model_validate(
            {"type": "static", "provider": "game.Version", "value": "current", "params": ["int"], "arguments": [1]}
        )
        assert descriptor.target == "game.Version"
        assert descriptor.value == "current"
        assert descriptor.params == ["int"]
        assert descriptor.arguments == [1]

    def test_provider_type_without_kind(self):
        """Test that a provider type alone declares a provider class."""
        descriptor = ProviderDescriptor.model_validate({"provider": "game.VersionProvider"})
        assert descriptor.kind == ProviderKind.PROVIDER
        assert descriptor.target == "game.VersionProvider"

    def test_explicit_kind_wins(self):
        """Test that an explicit kind is never replaced."""
        descriptor = ProviderDescriptor.model_validate(
            {"type": "static", "provider": "game.Version", "value": "current"}
        )
        assert descriptor.kind == ProviderKind.STATIC

    @pytest.mark.parametrize(
        "retention, expected",
        [("LAZY", RetentionType.LAZY), ("Cached", RetentionType.CACHED), ("lazy", RetentionType.LAZY)],
    )
    def test_retention_any_case(self, retention, expected):
        """Test that enum constant names are accepted in any case."""
        descriptor = ProviderDescriptor.model_validate({"type": "value", "value": "a", "retention": retention})
        assert descriptor.retention == expected

    def test_kind_any_case(self):
        """Test that kinds are accepted in upper case."""
        descriptor = ProviderDescriptor.model_validate({"type": "REGISTERED", "value": "version"})
        assert descriptor.kind == ProviderKind.REGISTERED

    @pytest.mark.parametrize(
        "data",
        [
            {"type": "value"},
            {"type": "registered"},
            {"type": "static", "value": "current"},
            {"type": "static", "provider": "game.Version"},
            {"type": "provider"},
            {"type": "unknown", "value": "x"},
        ],
    )
    def test_incomplete_descriptors(self, data):
        """Test that each kind requires its fields."""
        with pytest.raises(ValidationError):
            ProviderDescriptor.model_validate(data)


class TestMappingDocument:
    """Test cases for MappingDocument."""

    def test_empty_document(self):
        """Test that both sections are optional."""
        document = MappingDocument()
        assert document.variables == {}
        assert document.replacements == {}

    def test_scalar_variables_become_strings(self):
        """Test that numbers and booleans are stored as strings."""
        document = MappingDocument.model_validate({"variables": {"n": 1, "f": 1.5, "b": True, "s": "x"}})
        assert document.variables == {"n": "1", "f": "1.5", "b": "true", "s": "x"}

    def test_descriptor_variables(self):
        """Test that object values are parsed as provider descriptors."""
        document = MappingDocument.model_validate(
            {"variables": {"v": {"type": "registered", "value": "version"}}}
        )
        assert isinstance(document.variables["v"], ProviderDescriptor)

    def test_replacements(self):
        """Test that replacements are parsed per owner template."""
        document = MappingDocument.model_validate(
            {"replacements": {"@v@.Player": [{"method": "health", "original": "a"}]}}
        )
        assert document.replacements["@v@.Player"] == [RenameEntry(logical_name="health", real_name="a")]

    def test_invalid_variable(self):
        """Test that invalid descriptors are rejected."""
        with pytest.raises(ValidationError):
            MappingDocument.model_validate({"variables": {"v": {"type": "registered"}}})


class TestMarkers:
    """Test cases for marker models."""

    def test_adapts_marker(self):
        """Test that AdaptsMarker stores its template."""
        assert AdaptsMarker(target="@v@.Player").target == "@v@.Player"

    def test_field_marker_default(self):
        """Test that FieldMarker has no field name by default."""
        assert FieldMarker().field is None

    def test_markers_are_frozen(self):
        """Test that markers are immutable."""
        marker = AdaptsMarker(target="x")
        with pytest.raises(ValidationError):
            marker.target = "y"
