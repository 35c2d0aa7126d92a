"""
Units of measurement and their elementary conversions.

A `~unit.Unit` belongs to exactly one family of units, which is identified by
the family's base unit. Each derived unit knows how to convert a quantity to
and from its base unit, and nothing else. Conversions between arbitrary units
are the business of `~conversion.ConversionRegistry`.
"""

import itertools
import types
import typing

import numpy

from measures.core import iterables
from measures.core import measure


Transform = typing.Callable[[float], float]


class UnitDefinitionError(TypeError):
    """Invalid arguments to the unit constructor."""

    def __init__(self, symbol: str, reason: str) -> None:
        self.symbol = symbol
        self.reason = reason

    def __str__(self) -> str:
        return f"Can't define unit {self.symbol!r}: {self.reason}"


class ConversionOverflowError(ArithmeticError):
    """A finite quantity became infinite during conversion."""

    def __init__(self, quantity: float, u0, u1) -> None:
        self.quantity = quantity
        self.u0 = u0
        self.u1 = u1

    def __str__(self) -> str:
        return (
            f"Conversion of {self.quantity!r} from {str(self.u0)!r}"
            f" to {str(self.u1)!r} caused overflow"
        )


def identity(quantity: float) -> float:
    """The conversion of a base unit to itself."""
    return quantity


def checked(
    transform: Transform,
    quantity: float,
    u0: 'Unit',
    u1: 'Unit',
) -> float:
    """Apply `transform` to `quantity` and detect overflow.

    A finite `quantity` that produces an infinite result is an error. An
    infinite `quantity` of either sign may legitimately produce an infinite
    result.

    Raises
    ------
    `~unit.ConversionOverflowError`
        The finite input produced an infinite output, or `transform` raised
        `OverflowError`.
    """
    quantity = float(quantity)
    try:
        result = float(transform(quantity))
    except OverflowError as err:
        raise ConversionOverflowError(quantity, u0, u1) from err
    if numpy.isfinite(quantity) and numpy.isinf(result):
        raise ConversionOverflowError(quantity, u0, u1)
    return result


_keys = itertools.count()


class Unit(iterables.ReprStrMixin):
    """A single unit of measurement, such as a metre or a degree Celsius.

    Instances are immutable. Every instance receives a unique integer key at
    creation, which determines equality and hashing; two units created from
    identical arguments are therefore different units.
    """

    def __init__(
        self,
        symbol: str='',
        base: 'Unit'=None,
        to_base: Transform=None,
        from_base: Transform=None,
        name: str=None,
    ) -> None:
        """
        Parameters
        ----------
        symbol : string, default=''
            The symbol used to display this unit.

        base : `~unit.Unit`, optional
            The base unit of this unit's family. Omitting this argument makes
            the new instance a base unit, with identity transforms.

        to_base : callable
            The function that converts a quantity of this unit to a quantity of
            `base`. Required when `base` is given.

        from_base : callable
            The inverse of `to_base`. Required when `base` is given.

        name : string, optional
            A descriptive name. Defaults to `symbol`.
        """
        if not isinstance(symbol, str):
            raise UnitDefinitionError(symbol, "symbol must be a string")
        if base is None:
            if to_base is not None or from_base is not None:
                raise UnitDefinitionError(
                    symbol,
                    "a base unit may not define transforms"
                )
            base = self
            to_base = from_base = identity
        else:
            if not isinstance(base, Unit):
                raise UnitDefinitionError(symbol, f"{base!r} is not a unit")
            if base.base is not base:
                raise UnitDefinitionError(
                    symbol,
                    f"{str(base)!r} is not a base unit"
                )
            for transform in (to_base, from_base):
                if not callable(transform):
                    raise UnitDefinitionError(
                        symbol,
                        "transforms must be callable"
                    )
        setattr_ = super().__setattr__
        setattr_('_key', next(_keys))
        setattr_('_symbol', symbol)
        setattr_('_name', name or symbol)
        setattr_('_base', base)
        setattr_('_to_base', to_base)
        setattr_('_from_base', from_base)
        display = iterables.Display(
            __str__="{symbol}",
            __repr__="{symbol!r}, base={base!r}",
        )
        display.register('symbol', base='_base_symbol')
        setattr_('_display', types.MappingProxyType(dict(display)))

    def __setattr__(self, name: str, value) -> None:
        raise AttributeError(f"Can't set attribute {name!r} of a unit")

    @property
    def key(self) -> int:
        """The unique handle of this unit."""
        return self._key

    @property
    def symbol(self) -> str:
        """The symbol of this unit."""
        return self._symbol

    @property
    def name(self) -> str:
        """The descriptive name of this unit."""
        return self._name

    @property
    def base(self) -> 'Unit':
        """The base unit of this unit's family."""
        return self._base

    @property
    def to_base(self) -> Transform:
        return self._to_base

    @property
    def from_base(self) -> Transform:
        return self._from_base

    @property
    def _base_symbol(self):
        return self._base.symbol

    @property
    def is_base(self) -> bool:
        """True if this unit is the base unit of its family."""
        return self._base is self

    def get_base_unit(self) -> 'Unit':
        """The common base unit of this unit's family.

        For example, the metre is the base unit of all length units, including
        the foot and the nautical mile.
        """
        return self._base

    def create_measure(self, quantity: float) -> 'measure.Measure':
        """Create a measure of `quantity` in this unit."""
        return measure.Measure(quantity, self)

    def convert_to_base_unit(self, quantity: float) -> 'measure.Measure':
        """Convert a quantity of this unit to a measure in the base unit.

        For example, converting 1.0 kilometre produces 1000.0 metres.
        """
        result = checked(self._to_base, quantity, self, self._base)
        return measure.Measure(result, self._base)

    def convert_from_base_unit(self, quantity: float) -> 'measure.Measure':
        """Convert a quantity of the base unit to a measure in this unit."""
        result = checked(self._from_base, quantity, self._base, self)
        return measure.Measure(result, self)

    def __eq__(self, other) -> bool:
        """True if `other` is this unit."""
        if not isinstance(other, Unit):
            return NotImplemented
        return other._key == self._key

    def __hash__(self) -> int:
        return hash((Unit, self._key))

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self
