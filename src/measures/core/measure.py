import numbers
import typing

from measures.core import iterables
from measures.core import unit as _unit

if typing.TYPE_CHECKING:
    from measures.core import conversion


class Measure(iterables.ReprStrMixin):
    """A quantity of some unit.

    The unit of a measure never changes. Converting a measure to another unit
    creates a new measure, via `convert_to` or an instance of
    `~conversion.ConversionRegistry`. The quantity is mutable.

    Measures are single-owner values: concurrent calls to `set_quantity` on
    one instance require external synchronization.
    """

    def __init__(self, quantity: numbers.Real, unit: '_unit.Unit') -> None:
        """
        Parameters
        ----------
        quantity : real number
            The number of units in this measure.

        unit : `~unit.Unit`
            The unit of this measure. May not be ``None``.
        """
        if unit is None:
            raise TypeError(
                "Unit instance provided to Measure may not be None"
            ) from None
        if not isinstance(unit, _unit.Unit):
            raise TypeError(f"Expected a unit, not {type(unit)}") from None
        self._quantity = float(quantity)
        self._unit = unit
        self.display['__str__'] = "{quantity} [{unit}]"
        self.display['__repr__'] = "{quantity}, unit={unit!r}"
        self.display.register('quantity', 'unit')

    @property
    def quantity(self) -> float:
        """The number of units in this measure."""
        return self._quantity

    @quantity.setter
    def quantity(self, value: numbers.Real):
        self._quantity = float(value)

    @property
    def unit(self) -> '_unit.Unit':
        """The unit of this measure."""
        return self._unit

    def get_quantity(self) -> float:
        return self._quantity

    def set_quantity(self, quantity: numbers.Real) -> None:
        self.quantity = quantity

    def get_unit(self) -> '_unit.Unit':
        return self._unit

    def equals_with_tolerance(
        self,
        other: 'Measure',
        tolerance: float,
        registry: typing.Optional['conversion.ConversionRegistry']=None,
    ) -> bool:
        """True if `other` is equal to this measure within `tolerance`.

        Floating-point arithmetic quickly introduces small differences between
        results of independent conversion paths, so this is the appropriate
        equality test for measures. If `other` has a different unit, this
        method first converts it to the unit of this measure.

        Parameters
        ----------
        other : `~measure.Measure`
            The measure to compare to this one.

        tolerance : float
            The largest allowed absolute difference, in the unit of this
            measure.

        registry : `~conversion.ConversionRegistry`, optional
            The registry to use for converting `other`. Defaults to
            `~conversion.DEFAULT`.
        """
        registry = _resolve(registry)
        converted = registry.convert(other.quantity, other.unit, self._unit)
        return abs(self._quantity - converted.quantity) <= tolerance

    def convert_to(
        self,
        new_unit: '_unit.Unit',
        registry: typing.Optional['conversion.ConversionRegistry']=None,
    ) -> 'Measure':
        """Create a new measure by converting this one to `new_unit`."""
        registry = _resolve(registry)
        return registry.convert(self, new_unit)

    def __float__(self) -> float:
        """Called for float(self)."""
        return self._quantity


def _resolve(
    registry: typing.Optional['conversion.ConversionRegistry'],
) -> 'conversion.ConversionRegistry':
    """Use `registry` if given, or the default registry."""
    # The conversion module depends on this one.
    from measures.core import conversion
    return conversion.DEFAULT if registry is None else registry
