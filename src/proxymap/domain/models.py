from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from proxymap.domain.enums import ProviderKind, RetentionType


class MemberDescriptor(BaseModel):
    """Structural key used to look up and cache a member of a type.

    Two descriptors are equal when both the name and the ordered parameter
    types are equal.

    Attributes:
        name: The real member name.
        parameter_types: Ordered parameter types of the member.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="The member name.")
    parameter_types: Tuple[Any, ...] = Field(
        default=(),
        description="Ordered parameter types of the member.",
    )

    def __str__(self) -> str:
        params = ", ".join(getattr(param, "__name__", repr(param)) for param in self.parameter_types)
        return f"{self.name}({params})"


class RenameEntry(BaseModel):
    """Explicit mapping of a logical member name to a real member name.

    Attributes:
        logical_name: The name used in the logical interface.
        real_name: The name of the member on the adapted type.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    logical_name: str = Field(
        ...,
        validation_alias=AliasChoices("method", "logical_name", "logicalName"),
        description="The name used in the logical interface.",
    )
    real_name: str = Field(
        ...,
        validation_alias=AliasChoices("original", "real_name", "realName"),
        description="The name of the member on the adapted type.",
    )


class ProviderDescriptor(BaseModel):
    """Structured provider declaration inside a mapping document.

    Attributes:
        kind: Which kind of provider to build. Defaults to a provider class
            when a provider type is given, else to a direct value.
        retention: Retention policy of the provided value.
        value: Direct value, registered provider name or static member name.
        target: Type template for static calls and provider classes.
        params: Parameter type templates of the static member.
        arguments: Arguments passed to the static member.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: ProviderKind = Field(
        default=ProviderKind.VALUE,
        validation_alias=AliasChoices("type", "kind"),
        description="Which kind of provider to build.",
    )
    retention: RetentionType = Field(default=RetentionType.CACHED, description="Retention of the value.")
    value: Optional[str] = Field(default=None, description="Value, provider name or member name.")
    target: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("provider", "target"),
        description="Type template for static calls and provider classes.",
    )
    params: List[str] = Field(default_factory=list, description="Parameter type templates.")
    arguments: List[Any] = Field(default_factory=list, description="Arguments for static calls.")

    @model_validator(mode="before")
    @classmethod
    def _infer_kind(cls, data: Any) -> Any:
        # Without an explicit kind, a provider type means a provider class
        if not isinstance(data, dict) or "type" in data or "kind" in data:
            return data
        data = dict(data)
        data["kind"] = ProviderKind.PROVIDER if "provider" in data or "target" in data else ProviderKind.VALUE
        return data

    @field_validator("kind", "retention", mode="before")
    @classmethod
    def _lowercase_names(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_required_fields(self) -> "ProviderDescriptor":
        if self.kind in (ProviderKind.VALUE, ProviderKind.REGISTERED) and self.value is None:
            raise ValueError(f"'{self.kind}' provider requires a 'value'")
        if self.kind == ProviderKind.STATIC and (self.target is None or self.value is None):
            raise ValueError("'static' provider requires both 'provider' and 'value'")
        if self.kind == ProviderKind.PROVIDER and self.target is None:
            raise ValueError("'provider' provider requires a 'provider' type")
        return self


class MappingDocument(BaseModel):
    """Parsed mapping configuration.

    Attributes:
        variables: Variable name to literal value or provider descriptor.
        replacements: Owner type template to member renames for that type.
    """

    variables: Dict[str, Union[str, ProviderDescriptor]] = Field(
        default_factory=dict,
        description="Variable name to literal value or provider descriptor.",
    )
    replacements: Dict[str, List[RenameEntry]] = Field(
        default_factory=dict,
        description="Owner type template to member renames.",
    )

    @field_validator("variables", mode="before")
    @classmethod
    def _stringify_scalars(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        variables = {}
        for name, item in value.items():
            if isinstance(item, bool):
                item = str(item).lower()
            elif isinstance(item, (int, float)):
                item = str(item)
            variables[name] = item
        return variables


class AdaptsMarker(BaseModel):
    """Declares which concrete type a logical interface adapts.

    Attributes:
        target: Type template of the adapted type.
    """

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., description="Type template of the adapted type.")


class RenameMarker(BaseModel):
    """Overrides the logical name used to resolve a method.

    Attributes:
        target: Member name template used instead of the method name.
    """

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., description="Member name template.")


class FieldMarker(BaseModel):
    """Turns a logical method into a getter/setter of a field.

    Attributes:
        field: Field name template; the method name is used when omitted.
    """

    model_config = ConfigDict(frozen=True)

    field: Optional[str] = Field(default=None, description="Field name template.")
