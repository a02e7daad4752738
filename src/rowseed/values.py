"""Turn raw fixture cells into concrete column values.

A cell ending in ``name(argument)`` is a value function call. The argument
is hashed with SHA-256 and the first 8 bytes (big-endian) seed a
pseudorandom generator, so ``uuid(alice)`` is the same UUID on every run
and every machine. A cell that also starts with ``table:`` is a reference
to the row with that identifier.
"""

import datetime
import hashlib
import random
import re
import uuid
from dataclasses import dataclass

from rowseed.exceptions import GeneratorError, UnknownGeneratorError
from rowseed.generators.faker_generator import register_faker_generators
from rowseed.generators.natural_date import natural_date
from rowseed.generators.registry import GeneratorRegistry, default_registry

VALUE_FUNC_PATTERN = re.compile(r"([a-zA-Z]+)\((\S+)\)$")
REFERENCE_PATTERN = re.compile(r"^[a-zA-Z0-9_]+:")

register_faker_generators(default_registry())


@dataclass(frozen=True)
class ResolvedValue:
    """
    Result of resolving one cell.

    Attributes:
        value: Concrete column value
        is_reference: Whether the raw cell names another row
    """

    value: str
    is_reference: bool = False


def seed_for(argument: str) -> int:
    """Derive the 64-bit generator seed for a value function argument."""
    digest = hashlib.sha256(argument.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def seeded_uuid(rng: random.Random) -> str:
    """Random (version 4) UUID drawn from a seeded generator."""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def resolve(
    raw: str,
    registry: GeneratorRegistry | None = None,
    now: datetime.datetime | None = None,
) -> ResolvedValue:
    """
    Resolve one raw cell.

    Args:
        raw: Cell text, e.g. 'Alice', 'uuid(alice)' or 'users:literal(1)'
        registry: Fake-data generators (defaults to the global registry)
        now: Reference time for naturalDate() (defaults to the current time)

    Returns:
        ResolvedValue with the concrete value and reference flag

    Raises:
        UnknownGeneratorError: If the function name is not known
        GeneratorError: If the generator fails

    Examples:
        >>> resolve("literal(hello)").value
        'hello'
        >>> resolve("users:literal(1)")
        ResolvedValue(value='1', is_reference=True)
        >>> resolve("plain text")
        ResolvedValue(value='plain text', is_reference=False)
    """
    match = VALUE_FUNC_PATTERN.search(raw)
    if match is None:
        return ResolvedValue(raw)

    is_reference = REFERENCE_PATTERN.match(raw) is not None
    name, argument = match.group(1), match.group(2)

    if name == "literal":
        return ResolvedValue(argument, is_reference)
    if name == "naturalDate":
        try:
            return ResolvedValue(natural_date(argument, now), is_reference)
        except ValueError as e:
            raise GeneratorError(name, argument, str(e)) from e

    rng = random.Random(seed_for(argument))
    if name == "uuid":
        return ResolvedValue(seeded_uuid(rng), is_reference)
    if name == "int":
        return ResolvedValue(str(rng.getrandbits(63)), is_reference)

    registry = registry if registry is not None else default_registry()
    generator = registry.get(name)
    if generator is None:
        raise UnknownGeneratorError(name, argument)
    try:
        value = generator(seed_for(argument))
    except Exception as e:
        raise GeneratorError(name, argument, str(e)) from e
    return ResolvedValue(str(value), is_reference)
