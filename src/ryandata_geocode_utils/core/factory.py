"""Named plugin registries.

Providers and storage adapters are both selected by a short name coming from
configuration ("google", "sqlite", ...). Each kind gets a factory subclass with
its own registry and lazily registered built-ins.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

T = TypeVar("T")


class PluginFactory(ABC, Generic[T]):
    """Registry-backed factory keyed by case-insensitive names.

    Subclasses define:
        - _registry: name -> implementation class
        - _default_type: name used when none is given
        - _entity_name: label used in error messages ("provider", "storage")
        - _ensure_defaults_registered(): registers the built-in implementations

    Example subclass:
        class ProviderFactory(PluginFactory[GeocodeProviderProtocol]):
            _registry: ClassVar[dict[str, type[GeocodeProviderProtocol]]] = {}
            _default_type: ClassVar[str] = "google"
            _entity_name: ClassVar[str] = "provider"

            @classmethod
            def _ensure_defaults_registered(cls) -> None:
                if "google" not in cls._registry:
                    cls._registry["google"] = GoogleCsvProvider
    """

    _registry: ClassVar[dict[str, type[Any]]]
    _default_type: ClassVar[str]
    _entity_name: ClassVar[str]

    @classmethod
    @abstractmethod
    def _ensure_defaults_registered(cls) -> None:
        """Register built-in implementations if missing."""
        ...

    @staticmethod
    def _normalize_name(name: str) -> str:
        return name.strip().lower()

    @classmethod
    def register(cls, name: str, impl_class: type[T]) -> None:
        """Register (or replace) an implementation under a name."""
        cls._registry[cls._normalize_name(name)] = impl_class

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._registry.pop(cls._normalize_name(name), None)

    @classmethod
    def is_registered(cls, name: str | None) -> bool:
        if not name:
            return False
        cls._ensure_defaults_registered()
        return cls._normalize_name(name) in cls._registry

    @classmethod
    def resolve(cls, name: str | None = None) -> type[T]:
        """Look up the implementation class for a name.

        Args:
            name: Registered name. None or empty means the default type.

        Raises:
            ValueError: If the name is not registered.
        """
        cls._ensure_defaults_registered()
        type_name = cls._normalize_name(name) if name else cls._default_type
        if type_name not in cls._registry:
            available = ", ".join(sorted(cls._registry))
            raise ValueError(
                f"Unknown {cls._entity_name} type: {type_name}. Available types: {available}"
            )
        return cls._registry[type_name]  # type: ignore[no-any-return]

    @classmethod
    def create(cls, name: str | None = None, **kwargs: Any) -> T:
        """Instantiate a registered implementation.

        Args:
            name: Registered name. None means the default type.
            **kwargs: Constructor arguments.

        Returns:
            New instance.

        Raises:
            ValueError: If the name is not registered.
        """
        impl_class = cls.resolve(name)
        return impl_class(**kwargs)

    @classmethod
    def available_types(cls) -> list[str]:
        cls._ensure_defaults_registered()
        return sorted(cls._registry)

    @classmethod
    def clear_registry(cls) -> None:
        """Drop every registration; built-ins return on next access."""
        cls._registry.clear()
