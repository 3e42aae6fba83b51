from enum import Enum


class RetentionType(str, Enum):
    """Defines how long a provided variable value is kept.

    Attributes:
        LAZY: Value is recomputed every time the variable is substituted.
        CACHED: Value is computed once per resolver and reused afterwards.
    """

    LAZY = "lazy"
    CACHED = "cached"

    def __str__(self) -> str:
        return self.value


class ProviderKind(str, Enum):
    """Kinds of provider descriptors accepted in a mapping document.

    Attributes:
        VALUE: A direct value given in the descriptor itself.
        REGISTERED: Delegates to a provider registered programmatically.
        STATIC: Calls a static member of a named type.
        PROVIDER: Instantiates a named provider class and uses its value.
    """

    VALUE = "value"
    REGISTERED = "registered"
    STATIC = "static"
    PROVIDER = "provider"

    def __str__(self) -> str:
        return self.value
