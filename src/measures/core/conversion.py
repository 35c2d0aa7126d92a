"""
Conversions between arbitrary units.

A `~conversion.ConversionRegistry` holds specialized conversions between
pairs of units, which may be more accurate than a conversion through a shared
base unit. For example, converting kilometres to nautical miles via metres may
lose precision or overflow where a direct factor does not.

The registry resolves each conversion with the first available strategy from
the following list:

1. the identity conversion, when the units are the same;
2. a registered function from the input unit to the output unit;
3. a registered scalar from the input unit to the output unit;
4. a registered scalar from the output unit to the input unit, as a divisor;
5. conversion through the base unit shared by both units.

Any other conversion is an error.
"""

import logging
import threading
import typing

import numpy

import measures
from measures.core import measure
from measures.core import unit as _unit
from measures.core import units


logger = logging.getLogger(__name__)


Function = typing.Callable[[float], float]
Key = typing.Tuple[int, int]


class ConversionError(Exception):
    """Base class for errors in a conversion registry."""


class InvalidScalarError(ConversionError, ArithmeticError):
    """A scalar conversion factor is not usable."""

    def __init__(self, u0: _unit.Unit, u1: _unit.Unit, scalar: float) -> None:
        self.u0 = u0
        self.u1 = u1
        self.scalar = scalar

    def __str__(self) -> str:
        return (
            f"Can't register scalar {self.scalar!r}"
            f" from {str(self.u0)!r} to {str(self.u1)!r}"
        )


class UnsupportedConversionError(ConversionError):
    """No registered or base-unit path connects two units."""

    def __init__(self, u0: _unit.Unit, u1: _unit.Unit) -> None:
        self.u0 = u0
        self.u1 = u1

    def __str__(self) -> str:
        return (
            f"Conversion from {str(self.u0)!r}"
            f" to {str(self.u1)!r} is not supported"
        )


def _key(u0: _unit.Unit, u1: _unit.Unit) -> Key:
    """Create the registry key of an ordered pair of units."""
    for u in (u0, u1):
        if not isinstance(u, _unit.Unit):
            raise TypeError(f"Expected a unit, not {type(u)}") from None
    return (u0.key, u1.key)


def _scalar(u0: _unit.Unit, u1: _unit.Unit, value) -> float:
    """Convert `value` to a usable scalar factor from `u0` to `u1`."""
    scalar = float(value)
    if scalar == 0.0 or not numpy.isfinite(scalar):
        raise InvalidScalarError(u0, u1, scalar)
    return scalar


Instance = typing.TypeVar('Instance', bound='ConversionRegistry')


class ConversionRegistry:
    """Specialized conversions between ordered pairs of units.

    All methods that read or modify the registered conversions hold a
    per-instance lock, so an instance may be shared between threads.
    Concurrent registrations for the same pair resolve as last write wins.
    """

    def __init__(
        self,
        scalars: typing.Mapping[
            typing.Tuple[_unit.Unit, _unit.Unit], float
        ]=None,
        functions: typing.Mapping[
            typing.Tuple[_unit.Unit, _unit.Unit], Function
        ]=None,
    ) -> None:
        """
        Parameters
        ----------
        scalars : mapping, optional
            Initial scalar conversions. Items must have the form ``((unit_in,
            unit_out), scalar)``.

        functions : mapping, optional
            Initial function conversions. Items must have the form ``((unit_in,
            unit_out), function)``.
        """
        self._lock = threading.RLock()
        self._scalars: typing.Dict[Key, float] = {}
        self._functions: typing.Dict[Key, Function] = {}
        for (u0, u1), scalar in (scalars or {}).items():
            self.put_scalar(u0, u1, scalar)
        for (u0, u1), function in (functions or {}).items():
            self.put_function(u0, u1, function)

    @classmethod
    def standard(cls: typing.Type[Instance]) -> Instance:
        """Create a new registry with the standard high-precision pairs."""
        return cls(scalars=STANDARD_SCALARS)

    @classmethod
    def from_environment(
        cls: typing.Type[Instance],
        environment: typing.Mapping[str, str]=None,
    ) -> Instance:
        """Create a standard registry and load configured scalars.

        Parameters
        ----------
        environment : mapping, optional
            The configured scalars, in the form accepted by `load`. Defaults to
            the ``[scalars]`` section of the measures configuration file.
        """
        if environment is None:
            environment = measures.Environment('scalars')
        registry = cls.standard()
        registry.load(environment)
        return registry

    def copy(self: Instance) -> Instance:
        """Create an independent registry with the same conversions."""
        new = type(self)()
        with self._lock:
            new._scalars.update(self._scalars)
            new._functions.update(self._functions)
        return new

    def put_scalar(
        self,
        unit_in: _unit.Unit,
        unit_out: _unit.Unit,
        scalar: float,
    ) -> typing.Optional[float]:
        """Register a scalar conversion factor from `unit_in` to `unit_out`.

        The registry will also use `scalar` as a divisor to convert `unit_out`
        to `unit_in`, unless it has a separate entry for that pair.

        Returns
        -------
        float or `None`
            The previously registered scalar for this pair, if any.

        Raises
        ------
        `~conversion.InvalidScalarError`
            The scalar is zero, infinite, or NaN. The registry does not change.
        """
        key = _key(unit_in, unit_out)
        scalar = _scalar(unit_in, unit_out, scalar)
        with self._lock:
            previous = self._scalars.get(key)
            self._scalars[key] = scalar
        _log_registration('scalar', unit_in, unit_out, scalar, previous)
        return previous

    def put_function(
        self,
        unit_in: _unit.Unit,
        unit_out: _unit.Unit,
        function: Function,
    ) -> typing.Optional[Function]:
        """Register a custom conversion from `unit_in` to `unit_out`.

        Returns
        -------
        callable or `None`
            The previously registered function for this pair, if any.
        """
        key = _key(unit_in, unit_out)
        if not callable(function):
            raise TypeError(
                f"Conversion function must be callable, not {type(function)}"
            ) from None
        with self._lock:
            previous = self._functions.get(key)
            self._functions[key] = function
        _log_registration('function', unit_in, unit_out, function, previous)
        return previous

    def get_scalar(
        self,
        unit_in: _unit.Unit,
        unit_out: _unit.Unit,
    ) -> typing.Optional[float]:
        """The scalar registered for this pair, if any."""
        key = _key(unit_in, unit_out)
        with self._lock:
            return self._scalars.get(key)

    def get_function(
        self,
        unit_in: _unit.Unit,
        unit_out: _unit.Unit,
    ) -> typing.Optional[Function]:
        """The function registered for this pair, if any."""
        key = _key(unit_in, unit_out)
        with self._lock:
            return self._functions.get(key)

    def load(self, config: typing.Mapping[str, str]) -> None:
        """Register scalars from string definitions.

        Parameters
        ----------
        config : mapping
            Each key has the form ``'<unit in> -> <unit out>'``, and each value
            is the string representation of the scalar. Units may be given by
            any symbol, name, or alias in `~units.CATALOG`.

        Raises
        ------
        ValueError
            An entry is malformed. The registry does not change.

        `~units.UnknownUnitError`
            An entry names an unknown unit. The registry does not change.

        `~conversion.InvalidScalarError`
            An entry defines an unusable scalar. The registry does not change.
        """
        entries = []
        for pair, value in config.items():
            u0, sep, u1 = pair.partition('->')
            if not sep:
                raise ValueError(
                    f"Can't parse conversion {pair!r}"
                    " (expected '<unit in> -> <unit out>')"
                ) from None
            unit_in = units.get(u0.strip())
            unit_out = units.get(u1.strip())
            scalar = _scalar(unit_in, unit_out, value)
            entries.append((unit_in, unit_out, scalar))
        previous = []
        with self._lock:
            for unit_in, unit_out, scalar in entries:
                key = _key(unit_in, unit_out)
                previous.append(self._scalars.get(key))
                self._scalars[key] = scalar
        for (unit_in, unit_out, scalar), old in zip(entries, previous):
            _log_registration('scalar', unit_in, unit_out, scalar, old)

    @typing.overload
    def convert(
        self,
        quantity: float,
        unit_in: _unit.Unit,
        unit_out: _unit.Unit,
    ) -> measure.Measure:
        """Convert `quantity` from `unit_in` to `unit_out`."""

    @typing.overload
    def convert(
        self,
        instance: measure.Measure,
        unit_out: _unit.Unit,
    ) -> measure.Measure:
        """Convert an existing measure to `unit_out`."""

    def convert(self, *args):
        """Concrete implementation."""
        if len(args) == 2 and isinstance(args[0], measure.Measure):
            instance, unit_out = args
            return self._convert(instance.quantity, instance.unit, unit_out)
        if len(args) == 3:
            return self._convert(*args)
        raise TypeError(
            "Expected (quantity, unit_in, unit_out) or (measure, unit_out)"
        ) from None

    def _convert(
        self,
        quantity: float,
        unit_in: _unit.Unit,
        unit_out: _unit.Unit,
    ) -> measure.Measure:
        """Apply the most accurate available conversion."""
        key = _key(unit_in, unit_out)
        quantity = float(quantity)
        if unit_in == unit_out:
            return measure.Measure(quantity, unit_out)
        with self._lock:
            function = self._functions.get(key)
            scalar = self._scalars.get(key)
            divisor = self._scalars.get(tuple(reversed(key)))
        if function is not None:
            logger.debug("%s -> %s: function", unit_in, unit_out)
            result = _unit.checked(function, quantity, unit_in, unit_out)
            return measure.Measure(result, unit_out)
        if scalar is not None:
            logger.debug("%s -> %s: scalar %r", unit_in, unit_out, scalar)
            result = _unit.checked(
                lambda q: q * scalar,
                quantity,
                unit_in,
                unit_out,
            )
            return measure.Measure(result, unit_out)
        if divisor is not None:
            logger.debug("%s -> %s: divisor %r", unit_in, unit_out, divisor)
            result = _unit.checked(
                lambda q: q / divisor,
                quantity,
                unit_in,
                unit_out,
            )
            return measure.Measure(result, unit_out)
        if unit_in.base == unit_out.base:
            logger.debug(
                "%s -> %s: via base unit %s",
                unit_in, unit_out, unit_in.base,
            )
            base = unit_in.convert_to_base_unit(quantity)
            return unit_out.convert_from_base_unit(base.quantity)
        raise UnsupportedConversionError(unit_in, unit_out)

    def __contains__(self, pair: typing.Tuple[_unit.Unit, _unit.Unit]):
        """True if this registry has an entry for `pair`."""
        try:
            key = _key(*pair)
        except (TypeError, ValueError):
            return False
        with self._lock:
            return key in self._functions or key in self._scalars

    def __len__(self) -> int:
        """The number of registered conversions."""
        with self._lock:
            return len(self._functions) + len(self._scalars)

    def __str__(self) -> str:
        with self._lock:
            return (
                f"{len(self._functions)} function(s),"
                f" {len(self._scalars)} scalar(s)"
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self})"


def _log_registration(kind: str, u0, u1, value, previous) -> None:
    """Log a new entry or an overwrite."""
    if previous is None:
        logger.debug("Registered %s %s -> %s: %r", kind, u0, u1, value)
    else:
        logger.info(
            "Replaced %s %s -> %s: %r (was %r)",
            kind, u0, u1, value, previous,
        )


STANDARD_SCALARS = {
    (units.NAUTICAL_MILE, units.CENTIMETRE): 185200.0,
    (units.NAUTICAL_MILE, units.METRE): 1852.0,
    (units.NAUTICAL_MILE, units.KILOMETRE): 1.852,
    (units.KILOMETRE, units.METRE): 1000.0,
    (units.KILOMETRE, units.CENTIMETRE): 100000.0,
}
"""High-precision conversions between standard units."""


DEFAULT = ConversionRegistry.standard()
"""The process-wide default registry."""


def convert(*args) -> measure.Measure:
    """Convert with the default registry.

    See `~conversion.ConversionRegistry.convert`.
    """
    return DEFAULT.convert(*args)


def put_scalar(
    unit_in: _unit.Unit,
    unit_out: _unit.Unit,
    scalar: float,
) -> typing.Optional[float]:
    """Register a scalar in the default registry."""
    return DEFAULT.put_scalar(unit_in, unit_out, scalar)


def put_function(
    unit_in: _unit.Unit,
    unit_out: _unit.Unit,
    function: Function,
) -> typing.Optional[Function]:
    """Register a function in the default registry."""
    return DEFAULT.put_function(unit_in, unit_out, function)
