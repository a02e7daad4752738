"""Value generators: fake-data registry and relative dates."""

from rowseed.generators.faker_generator import FakerGenerator, register_faker_generators
from rowseed.generators.natural_date import natural_date, parse_natural_date
from rowseed.generators.registry import GeneratorRegistry

__all__ = [
    "FakerGenerator",
    "GeneratorRegistry",
    "natural_date",
    "parse_natural_date",
    "register_faker_generators",
]
