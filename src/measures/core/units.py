"""
The standard catalog of units.

Each entry defines a unit in terms of the base unit of its family. Every
derived unit refers directly to a base unit. Aliases include the UCUM code of
each unit, where it differs from the symbol.
"""

import collections.abc
import typing

import numpy

from measures.core import iterables
from measures.core import unit


_units = [
    # Temperature
    {
        'symbol': 'K',
        'name': 'kelvin',
    },
    {
        'symbol': '°C',
        'name': 'celsius',
        'aliases': ['degree celsius', 'Cel', 'degC'],
        'base': 'kelvin',
        'to_base': lambda x: x + 273.15,
        'from_base': lambda k: k - 273.15,
    },
    {
        'symbol': '°F',
        'name': 'fahrenheit',
        'aliases': ['degree fahrenheit', 'degF'],
        'base': 'kelvin',
        'to_base': lambda x: (x - 32.0) * 5.0 / 9.0 + 273.15,
        'from_base': lambda k: (k - 273.15) * 9.0 / 5.0 + 32.0,
    },
    # Length
    {
        'symbol': 'm',
        'name': 'metre',
        'aliases': ['meter'],
    },
    {
        'symbol': 'cm',
        'name': 'centimetre',
        'aliases': ['centimeter'],
        'base': 'metre',
        'to_base': lambda x: x * 0.01,
        'from_base': lambda m: m * 100.0,
    },
    {
        'symbol': 'in',
        'name': 'inch',
        'aliases': ['inches', 'in_i'],
        'base': 'metre',
        'to_base': lambda x: x * 0.0254,
        'from_base': lambda m: m / 0.0254,
    },
    {
        'symbol': 'ft',
        'name': 'foot',
        'aliases': ['feet', 'ft_i'],
        'base': 'metre',
        'to_base': lambda x: x * 0.3048,
        'from_base': lambda m: m / 0.3048,
    },
    {
        'symbol': 'yd',
        'name': 'yard',
        'aliases': ['yd_i'],
        'base': 'metre',
        'to_base': lambda x: x * 0.9144,
        'from_base': lambda m: m / 0.9144,
    },
    {
        'symbol': 'mi',
        'name': 'mile',
        'aliases': ['mi_i'],
        'base': 'metre',
        'to_base': lambda x: x * 1609.344,
        'from_base': lambda m: m / 1609.344,
    },
    {
        'symbol': 'km',
        'name': 'kilometre',
        'aliases': ['kilometer'],
        'base': 'metre',
        'to_base': lambda x: x * 1000.0,
        'from_base': lambda m: m * 0.001,
    },
    {
        'symbol': 'NM',
        'name': 'nautical mile',
        'aliases': ['nmi', 'nmi_i'],
        'base': 'metre',
        'to_base': lambda x: x * 1852.0,
        'from_base': lambda m: m / 1852.0,
    },
    # Time
    {
        'symbol': 's',
        'name': 'second',
    },
    # Mass
    {
        'symbol': 'g',
        'name': 'gram',
    },
    {
        'symbol': 'lb',
        'name': 'pound',
        'aliases': ['lb_av'],
        'base': 'gram',
        'to_base': lambda x: x * 453.59237,
        'from_base': lambda g: g / 453.59237,
    },
    # Angle
    {
        'symbol': '°',
        'name': 'degree',
        'aliases': ['deg'],
    },
    {
        'symbol': "'",
        'name': 'arcminute',
        'aliases': ['minute of arc'],
        'base': 'degree',
        'to_base': lambda x: x / 60.0,
        'from_base': lambda d: d * 60.0,
    },
    {
        'symbol': '"',
        'name': 'arcsecond',
        'aliases': ['second of arc'],
        'base': 'degree',
        'to_base': lambda x: x / 3600.0,
        'from_base': lambda d: d * 3600.0,
    },
    {
        'symbol': 'rad',
        'name': 'radian',
        'base': 'degree',
        'to_base': lambda x: x * 180.0 / numpy.pi,
        'from_base': lambda d: d * numpy.pi / 180.0,
    },
]


class UnknownUnitError(KeyError):
    """The catalog has no unit with this name, symbol, or alias."""

    def __init__(self, key: str) -> None:
        self.key = key

    def __str__(self) -> str:
        return f"No standard unit called {self.key!r}"


def _build_catalog(entries: typing.Iterable[typing.Mapping]):
    """Create the standard units from their definitions."""
    built = {}
    for entry in entries:
        base = entry.get('base')
        built[entry['name']] = unit.Unit(
            entry['symbol'],
            base=built[base] if base else None,
            to_base=entry.get('to_base'),
            from_base=entry.get('from_base'),
            name=entry['name'],
        )
    return built


class _Catalog(collections.abc.Mapping, iterables.ReprStrMixin):
    """A read-only mapping of canonical name to standard unit."""

    def __init__(self, entries: typing.Iterable[typing.Mapping]) -> None:
        entries = list(entries)
        self._units = _build_catalog(entries)
        self._symbols = {u.symbol: u for u in self._units.values()}
        self._aliases = {}
        for entry in entries:
            names = iterables.unique(entry['name'], *entry.get('aliases', ()))
            for name in names:
                self._aliases[name.lower()] = self._units[entry['name']]

    def __len__(self) -> int:
        return len(self._units)

    def __iter__(self) -> typing.Iterator[str]:
        return iter(self._units)

    def __getitem__(self, key: str) -> unit.Unit:
        """Look up a unit by canonical name."""
        if key in self._units:
            return self._units[key]
        raise UnknownUnitError(key)

    def find(self, key: str) -> unit.Unit:
        """Look up a unit by symbol, name, or alias.

        Symbols are case-sensitive, to distinguish (for example) 'NM' from
        'nm'. Names and aliases are not.
        """
        if not isinstance(key, str):
            raise TypeError(f"Can't look up unit by {type(key)}") from None
        if key in self._symbols:
            return self._symbols[key]
        name = key.strip().lower()
        if name in self._aliases:
            return self._aliases[name]
        raise UnknownUnitError(key)

    def __str__(self) -> str:
        return ', '.join(f"{k} [{v}]" for k, v in self._units.items())


CATALOG = _Catalog(_units)
"""All standard units, by canonical name."""


def get(key: str) -> unit.Unit:
    """Get a standard unit by symbol, name, or alias."""
    return CATALOG.find(key)


KELVIN = CATALOG['kelvin']
CELSIUS = CATALOG['celsius']
FAHRENHEIT = CATALOG['fahrenheit']
METRE = CATALOG['metre']
CENTIMETRE = CATALOG['centimetre']
INCH = CATALOG['inch']
FOOT = CATALOG['foot']
YARD = CATALOG['yard']
MILE = CATALOG['mile']
KILOMETRE = CATALOG['kilometre']
NAUTICAL_MILE = CATALOG['nautical mile']
SECOND = CATALOG['second']
GRAM = CATALOG['gram']
POUND = CATALOG['pound']
DEGREE = CATALOG['degree']
ARCMINUTE = CATALOG['arcminute']
ARCSECOND = CATALOG['arcsecond']
RADIAN = CATALOG['radian']
