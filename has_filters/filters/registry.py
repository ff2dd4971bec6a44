from __future__ import annotations

from collections.abc import Iterable, Mapping

from has_filters.core.exceptions import UnfilterableAttrError
from has_filters.core.root_logger import get_logger

from .spec import FilterableSpec
from .surface import FilterSurface


class FilterRegistry:
    """
    Holds the compiled filter surface of every registered model.

    Surfaces are immutable. Registering a model again replaces its entry.
    """

    def __init__(self) -> None:
        self._surfaces: dict[type, FilterSurface] = {}

    def __contains__(self, model: type) -> bool:
        return model in self._surfaces

    def register(self, surface: FilterSurface) -> FilterSurface:
        self._surfaces[surface.model] = surface
        return surface

    def get(self, model: type) -> FilterSurface | None:
        return self._surfaces.get(model)

    def require(self, model: type) -> FilterSurface:
        surface = self.get(model)
        if surface is None:
            raise UnfilterableAttrError(f"{model.__name__} has no registered filters")
        return surface

    def clear(self) -> None:
        self._surfaces.clear()


filter_registry = FilterRegistry()


def has_filters(
    model: type,
    *configs: str,
    scopes: Iterable[str] = (),
    aliases: Mapping[str, str] | None = None,
    registry: FilterRegistry | None = None,
) -> FilterSurface:
    """
    Registers the filterable surface of a model.

    Args:
        model (type): The mapped SQLAlchemy class.
        *configs (str): Column and relationship names to filter on. A related
            model must already be registered.
        scopes (Iterable[str]): Scope names rules may reference as their "column".
        aliases (Mapping[str, str] | None): Alias name to raw SQL expression.
        registry (FilterRegistry | None): Defaults to the module registry.

    Returns:
        FilterSurface: The compiled surface, also stored in the registry.

    Example:
        ```python
        has_filters(User, "name", "group", scopes=["active"], aliases={"full_name": "first || ' ' || last"})
        ```
    """
    registry = registry if registry is not None else filter_registry

    spec = FilterableSpec.declare(model, configs, scopes=scopes, aliases=aliases, related_surface=registry.get)
    surface = FilterSurface.compile(spec)

    get_logger().debug(f"Registered {len(surface.filter_names)} filter(s) for {model.__name__}")
    return registry.register(surface)


def get_filter_surface(model: type, registry: FilterRegistry | None = None) -> FilterSurface:
    """Returns the registered surface of `model`, raising `UnfilterableAttrError` if there is none."""
    registry = registry if registry is not None else filter_registry
    return registry.require(model)
