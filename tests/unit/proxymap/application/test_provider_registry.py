"""Unit tests for ProviderRegistry."""

from proxymap.application.provider_registry import ProviderRegistry
from proxymap.application.providers import Provider
from proxymap.domain import IProviderRegistry


class TestProviderRegistry:
    """Test cases for provider registration."""

    def test_implements_interface(self):
        """Test that ProviderRegistry implements IProviderRegistry."""
        assert isinstance(ProviderRegistry(), IProviderRegistry)

    def test_register_and_get(self):
        """Test that a registered provider is returned."""
        registry = ProviderRegistry()
        provider = Provider.of("v1")
        registry.register_provider("version", provider)
        assert registry.get_registered_provider("version") is provider

    def test_unknown_name(self):
        """Test that unknown names return None."""
        assert ProviderRegistry().get_registered_provider("missing") is None

    def test_last_registration_wins(self):
        """Test that registering twice replaces the provider."""
        registry = ProviderRegistry()
        second = Provider.of("v2")
        registry.register_provider("version", Provider.of("v1"))
        registry.register_provider("version", second)
        assert registry.get_registered_provider("version") is second
        assert len(registry) == 1

    def test_unregister(self):
        """Test that unregistering removes and returns the provider."""
        registry = ProviderRegistry()
        provider = Provider.of("v1")
        registry.register_provider("version", provider)
        assert registry.unregister_provider("version") is provider
        assert "version" not in registry
        assert registry.unregister_provider("version") is None

    def test_copy_is_independent(self):
        """Test that copies do not share later registrations."""
        registry = ProviderRegistry({"a": Provider.of("1")})
        copied = registry.copy()
        copied.register_provider("b", Provider.of("2"))
        assert "a" in copied
        assert "b" not in registry

    def test_clear(self):
        """Test that clear removes every registration."""
        registry = ProviderRegistry({"a": Provider.of("1")})
        registry.clear()
        assert len(registry) == 0
