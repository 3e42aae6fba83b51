"""Unit tests for ProxyMapper."""

from abc import ABC, abstractmethod

import pytest

from proxymap.application.dispatch import is_adapter, unwrap
from proxymap.application.loading import NamespaceLoadingScope
from proxymap.application.mapper import ProxyMapper
from proxymap.application.providers import Provider
from proxymap.application.resolver import MappingResolver
from proxymap.domain import MemberNotFoundError, MissingMarkerError, adapts, field_proxy


class Point:
    instances = 0

    def __init__(self, x: float, y: float):
        Point.instances += 1
        self.x = x
        self.y = y

    def norm(self) -> float:
        return abs(self.x) + abs(self.y)

    @staticmethod
    def origin() -> "Point":
        return Point(0.0, 0.0)


class Segment:
    def __init__(self, start, end):
        self.start = start
        self.end = end

    def length(self) -> float:
        return abs(self.end.x - self.start.x) + abs(self.end.y - self.start.y)


class Fragile:
    def __init__(self, value):
        raise ValueError(f"rejected {value}")


@adapts("@geo@.Point")
class PointView(ABC):
    @abstractmethod
    def norm(self) -> float: ...

    @abstractmethod
    def origin(self) -> "PointView": ...

    @field_proxy("instances")
    def instances(self, value: int = ...) -> int: ...


@adapts("@geo@.Segment")
class SegmentView(ABC):
    @abstractmethod
    def length(self) -> float: ...


@adapts("@geo@.Fragile")
class FragileView(ABC):
    pass


class Unmarked(ABC):
    pass


@pytest.fixture
def scope():
    return NamespaceLoadingScope({"geo.Point": Point, "geo.Segment": Segment, "geo.Fragile": Fragile})


@pytest.fixture
def mapper():
    resolver = MappingResolver()
    resolver.register_provider("geo", Provider.of("geo"))
    return ProxyMapper(resolver)


class TestProxyMapper:
    """Test cases for the mapper entry points."""

    def test_resolver_property(self):
        """Test that the resolver is exposed."""
        resolver = MappingResolver()
        assert ProxyMapper(resolver).resolver is resolver

    def test_register_provider(self):
        """Test that providers are registered on the resolver."""
        mapper = ProxyMapper(MappingResolver())
        mapper.register_provider("geo", Provider.of("shapes"))
        assert mapper.resolver.resolve("@geo@") == "shapes"

    def test_wrap(self, mapper, scope):
        """Test wrapping an existing target."""
        view = mapper.wrap(PointView, Point(3.0, -4.0), scope)
        assert view.norm() == 7.0

    def test_wrap_adapter_unwraps(self, mapper, scope):
        """Test that adapters passed as targets are unwrapped."""
        point = Point(1.0, 1.0)
        inner = mapper.wrap(PointView, point, scope)
        outer = mapper.wrap(PointView, inner, scope)
        assert unwrap(outer) is point

    def test_wrap_unmarked(self, mapper):
        """Test that interfaces without @adapts are rejected."""
        with pytest.raises(MissingMarkerError):
            mapper.wrap(Unmarked, object())

    def test_static_method(self, mapper, scope):
        """Test calling a static member without an instance."""
        origin = mapper.static(PointView, scope).origin()
        assert is_adapter(origin)
        assert unwrap(origin).x == 0.0

    def test_static_field(self, mapper, scope):
        """Test reading a class field without an instance."""
        Point.instances = 0
        Point(1.0, 2.0)
        assert mapper.static(PointView, scope).instances() == 1


class TestNewInstance:
    """Test cases for ProxyMapper.new_instance."""

    def test_constructs_and_wraps(self, mapper, scope):
        """Test that a new target is created and wrapped."""
        view = mapper.new_instance(PointView, (float, float), 1.0, -2.0, loading_scope=scope)
        assert isinstance(view, PointView)
        assert view.norm() == 3.0

    def test_adapter_arguments_unwrapped(self, mapper, scope):
        """Test that adapter arguments reach the constructor unwrapped."""
        start = mapper.new_instance(PointView, (float, float), 0.0, 0.0, loading_scope=scope)
        end = mapper.new_instance(PointView, (float, float), 2.0, 3.0, loading_scope=scope)
        segment = mapper.new_instance(SegmentView, (PointView, PointView), start, end, loading_scope=scope)
        assert segment.length() == 5.0
        assert unwrap(segment).start is unwrap(start)

    def test_keyword_arguments(self, mapper, scope):
        """Test that keyword arguments are passed to the constructor."""
        view = mapper.new_instance(PointView, (float, float), x=1.0, y=1.0, loading_scope=scope)
        assert view.norm() == 2.0

    def test_missing_constructor(self, mapper, scope):
        """Test that a mismatched constructor shape raises."""
        with pytest.raises(MemberNotFoundError) as exc_info:
            mapper.new_instance(PointView, (float,), 1.0, loading_scope=scope)

        assert exc_info.value.member_kind == "constructor"
        assert exc_info.value.target_type is Point
        assert exc_info.value.parameter_types == (float,)

    def test_constructor_exception_propagates(self, mapper, scope):
        """Test that constructor exceptions are not wrapped."""
        with pytest.raises(ValueError, match="rejected 1"):
            mapper.new_instance(FragileView, (int,), 1, loading_scope=scope)

    def test_unmarked_interface(self, mapper):
        """Test that interfaces without @adapts are rejected."""
        with pytest.raises(MissingMarkerError):
            mapper.new_instance(Unmarked)


class TestSubstituteParameterTypes:
    """Test cases for parameter type substitution."""

    def test_interfaces_replaced(self, mapper, scope):
        """Test that logical interfaces become the adapted types."""
        assert mapper.substitute_parameter_types((PointView, int), scope) == (Point, int)

    def test_plain_types_unchanged(self, mapper):
        """Test that ordinary types are kept."""
        assert mapper.substitute_parameter_types([str, float]) == (str, float)
