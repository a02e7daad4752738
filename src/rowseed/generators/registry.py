"""Generator registry for fake-data value functions."""

from collections.abc import Callable

# seed -> generated value
GeneratorFunc = Callable[[int], str]


class GeneratorRegistry:
    """Registry mapping value function names to seeded generators."""

    def __init__(self):
        self._generators: dict[str, GeneratorFunc] = {}

    def register(self, name: str, func: GeneratorFunc) -> None:
        """
        Register a generator.

        Args:
            name: Value function name as written in fixtures (e.g. 'firstName')
            func: Callable taking an integer seed and returning a string

        Raises:
            ValueError: If func is not callable
        """
        if not callable(func):
            raise ValueError(f"Generator '{name}' must be callable, got {type(func).__name__}")
        self._generators[name] = func

    def get(self, name: str) -> GeneratorFunc | None:
        """
        Get generator by name.

        The first letter is case-insensitive: 'FirstName' finds 'firstName'.

        Args:
            name: Generator name

        Returns:
            Generator callable or None if not found
        """
        generator = self._generators.get(name)
        if generator is None and name:
            generator = self._generators.get(name[:1].lower() + name[1:])
        return generator

    def list_generators(self) -> list[str]:
        """
        List all registered generators.

        Returns:
            Sorted list of generator names
        """
        return sorted(self._generators)

    def clear(self) -> None:
        """Clear all registered generators (for testing)."""
        self._generators.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._generators


# Global registry instance
_registry = GeneratorRegistry()


def default_registry() -> GeneratorRegistry:
    """Get the process-wide registry, populated with Faker generators."""
    return _registry


def register_generator(name: str, func: GeneratorFunc) -> None:
    """
    Register a custom generator (user-facing API).

    Args:
        name: Generator name
        func: Callable taking an integer seed and returning a string

    Example:
        >>> import random
        >>> from rowseed import register_generator
        >>>
        >>> def sku(seed):
        ...     return f"SKU-{random.Random(seed).randint(0, 999999):06d}"
        >>>
        >>> register_generator('sku', sku)
    """
    _registry.register(name, func)


def get_generator(name: str) -> GeneratorFunc | None:
    """
    Get a registered generator.

    Args:
        name: Generator name

    Returns:
        Generator callable or None if not found
    """
    return _registry.get(name)


def list_generators() -> list[str]:
    """
    List all registered generators.

    Returns:
        List of generator names
    """
    return _registry.list_generators()


def clear_generators() -> None:
    """Clear all registered generators (for testing)."""
    _registry.clear()
