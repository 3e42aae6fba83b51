from typing import Any, List, Optional, Sequence


def _type_name(obj: Any) -> str:
    return getattr(obj, "__name__", repr(obj))


class ProxyMapException(Exception):
    """Base exception for proxymap errors."""


class ConfigurationError(ProxyMapException):
    """Raised for invalid mapping configurations.

    This occurs when:
    - A mapping document is not valid JSON or fails validation.
    - A provider descriptor is missing the fields its kind requires.
    - A logical interface lacks the marker declaring what it adapts.
    """


class MissingMarkerError(ConfigurationError):
    """Raised when a logical interface does not declare its adapted type.

    Attributes:
        interface: The interface missing the ``@adapts`` marker.
    """

    def __init__(self, interface: Any) -> None:
        self.interface = interface
        message = (
            f"Interface {_type_name(interface)} does not declare the type it adapts. "
            "Decorate it with @adapts('<type template>')"
        )
        super().__init__(message)


class ResolutionError(ProxyMapException):
    """Base class for lookups that fail after full template resolution."""


class TypeNotFoundError(ResolutionError):
    """Raised when a type template resolves to a name no scope can load.

    Attributes:
        template: The type template as written.
        resolved_name: The name after variable substitution.
        loading_scope: The scope used for the lookup, if any.
    """

    def __init__(self, template: str, resolved_name: str, loading_scope: Optional[Any] = None) -> None:
        self.template = template
        self.resolved_name = resolved_name
        self.loading_scope = loading_scope
        message = f"Cannot load type '{resolved_name}'"
        if template != resolved_name:
            message += f" (resolved from '{template}')"
        if loading_scope is not None:
            message += f" using scope {loading_scope!r}"
        super().__init__(message)


class MemberNotFoundError(ResolutionError):
    """Raised when a member of the adapted type cannot be found.

    Attributes:
        member_kind: One of ``"method"``, ``"field"`` or ``"constructor"``.
        logical_name: The name used by the logical interface.
        real_name: The name after rename and variable resolution.
        parameter_types: The parameter types used for the lookup.
        interface: The logical interface the call came from.
        target_type: The concrete type that was searched.
        interface_member: The interface method that was called, if any.
    """

    def __init__(
        self,
        member_kind: str,
        logical_name: str,
        real_name: str,
        parameter_types: Sequence[Any],
        interface: Any,
        target_type: Any,
        interface_member: Optional[str] = None,
    ) -> None:
        self.member_kind = member_kind
        self.logical_name = logical_name
        self.real_name = real_name
        self.parameter_types = tuple(parameter_types)
        self.interface = interface
        self.target_type = target_type
        self.interface_member = interface_member
        params = ", ".join(_type_name(param) for param in self.parameter_types)
        message = (
            f"{member_kind} {real_name}({params}) not found on {_type_name(target_type)} "
            f"(adapted by {_type_name(interface)})"
        )
        if logical_name != real_name:
            message += f"; logical name '{logical_name}'"
        if interface_member is not None and interface_member != logical_name:
            message += f"; called as {_type_name(interface)}.{interface_member}()"
        super().__init__(message)


class CircularVariableError(ProxyMapException):
    """Raised when variables reference each other in a cycle.

    Attributes:
        variable_chain: Names of the variables involved in the cycle.
        template: The outermost template being resolved, if known.
    """

    def __init__(self, variable_chain: List[str], template: Optional[str] = None) -> None:
        self.variable_chain = variable_chain
        self.template = template
        message = f"Circular variable reference detected: {' -> '.join(variable_chain)}"
        if template is not None:
            message += f" while resolving '{template}'"
        super().__init__(message)


class ProviderError(ProxyMapException):
    """Raised when a programmatically registered provider fails.

    Attributes:
        variable: The variable whose provider failed.
        reason: Optional reason for the failure.
    """

    def __init__(self, variable: str, reason: Optional[str] = None) -> None:
        self.variable = variable
        self.reason = reason
        message = f"Provider for variable '{variable}' failed"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)
