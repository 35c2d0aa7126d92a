import concurrent.futures
import logging
import sys

import pytest

from measures.core import conversion
from measures.core import measure
from measures.core import unit
from measures.core import units


MAX = sys.float_info.max


def test_standard_scalars(registry):
    """A standard registry contains the high-precision pairs."""
    assert len(registry) == len(conversion.STANDARD_SCALARS)
    for (u0, u1), scalar in conversion.STANDARD_SCALARS.items():
        assert (u0, u1) in registry
        assert registry.get_scalar(u0, u1) == scalar
        assert registry.get_function(u0, u1) is None
    assert (units.METRE, units.KILOMETRE) not in registry
    assert (units.METRE, 'km') not in registry


def test_known_conversions(registry):
    """Check exact results of conversions between standard units."""
    cases = {
        (1000.0, units.METRE, units.KILOMETRE): 1.0,
        (1.0, units.KILOMETRE, units.METRE): 1000.0,
        (1.0, units.NAUTICAL_MILE, units.KILOMETRE): 1.852,
        (1.852, units.KILOMETRE, units.NAUTICAL_MILE): 1.0,
        (185200.0, units.CENTIMETRE, units.NAUTICAL_MILE): 1.0,
        (274.15, units.KELVIN, units.CELSIUS): 1.0,
        (1.0, units.CELSIUS, units.KELVIN): 274.15,
    }
    for (quantity, u0, u1), expected in cases.items():
        result = registry.convert(quantity, u0, u1)
        assert result.quantity == expected
        assert result.unit is u1


def test_base_unit_conversions(registry):
    """Convert between units without a registered path."""
    cases = {
        (1.0, units.MILE, units.FOOT): 5280.0,
        (1.0, units.FOOT, units.INCH): 12.0,
        (1.0, units.YARD, units.FOOT): 3.0,
        (100.0, units.CELSIUS, units.FAHRENHEIT): 212.0,
        (1.0, units.POUND, units.GRAM): 453.59237,
        (1.0, units.DEGREE, units.ARCSECOND): 3600.0,
        (1.0, units.ARCMINUTE, units.ARCSECOND): 60.0,
        (180.0, units.DEGREE, units.RADIAN): 3.141592653589793,
    }
    for (quantity, u0, u1), expected in cases.items():
        result = registry.convert(quantity, u0, u1)
        assert result.quantity == pytest.approx(expected)
        assert result.unit is u1


def test_convert_measure(registry):
    """Convert an existing measure."""
    original = measure.Measure(2.0, units.KILOMETRE)
    result = registry.convert(original, units.METRE)
    assert result is not original
    assert result.quantity == 2000.0
    assert result.unit is units.METRE
    with pytest.raises(TypeError):
        registry.convert(original)
    with pytest.raises(TypeError):
        registry.convert(2.0, units.KILOMETRE)


def test_identity_conversion(registry, family):
    """Converting a unit to itself does not change the quantity."""
    quantities = [0.0, 0.1, -2.5, 1 / 3, 1e-300, MAX, float('inf')]
    for this in [*units.CATALOG.values(), *family.values()]:
        for quantity in quantities:
            result = registry.convert(quantity, this, this)
            assert result.quantity == quantity
            assert result.unit is this


def test_identity_precedes_function(registry, family):
    """A registered function does not replace the identity conversion."""
    u = family['base']
    registry.put_function(u, u, lambda x: x + 1.0)
    assert registry.convert(1.0, u, u).quantity == 1.0


def test_reverse_scalar(registry, family):
    """Use a scalar as a divisor for the reverse conversion."""
    u0, u1 = family['double'], family['triple']
    k = 7.0
    registry.put_scalar(u0, u1, k)
    for quantity in (0.0, 1.0, -3.5, 1e10, 0.3):
        assert registry.convert(quantity, u0, u1).quantity == quantity * k
        assert registry.convert(quantity, u1, u0).quantity == quantity / k


def test_forward_scalar_precedes_reverse(registry, family):
    """A scalar for the requested pair takes precedence over its reverse."""
    u0, u1 = family['double'], family['triple']
    registry.put_scalar(u0, u1, 4.0)
    registry.put_scalar(u1, u0, 5.0)
    assert registry.convert(1.0, u1, u0).quantity == 5.0


def test_function_precedes_scalar(registry, family):
    """A registered function takes precedence over a registered scalar."""
    u0, u1 = family['double'], family['triple']
    registry.put_scalar(u0, u1, 10.0)
    registry.put_function(u0, u1, lambda x: x + 1.0)
    assert registry.convert(2.0, u0, u1).quantity == 3.0
    assert registry.convert(2.0, u1, u0).quantity == 0.2


def test_registered_precedes_base_unit(registry, family):
    """Registered conversions take precedence over the shared base unit."""
    u0, u1 = family['double'], family['triple']
    assert registry.convert(3.0, u0, u1).quantity == pytest.approx(2.0)
    registry.put_scalar(u0, u1, 0.5)
    assert registry.convert(3.0, u0, u1).quantity == 1.5


def test_put_returns_previous(registry, family):
    """Registration returns the previous entry for the pair."""
    u0, u1 = family['double'], family['triple']
    assert registry.put_scalar(u0, u1, 2.0) is None
    assert registry.put_scalar(u0, u1, 3.0) == 2.0
    assert registry.get_scalar(u0, u1) == 3.0
    first = lambda x: x
    second = lambda x: -x
    assert registry.put_function(u0, u1, first) is None
    assert registry.put_function(u0, u1, second) is first
    assert registry.get_function(u0, u1) is second


def test_zero_scalar(registry, family):
    """Reject a zero scalar without changing the registry."""
    u0, u1 = family['double'], family['triple']
    registry.put_scalar(u0, u1, 2.0)
    size = len(registry)
    for zero in (0.0, -0.0, 0):
        with pytest.raises(conversion.InvalidScalarError):
            registry.put_scalar(u0, u1, zero)
    with pytest.raises(ArithmeticError):
        registry.put_scalar(u1, u0, 0.0)
    assert registry.get_scalar(u0, u1) == 2.0
    assert registry.get_scalar(u1, u0) is None
    assert len(registry) == size


def test_nonfinite_scalar(registry, family):
    """Reject an infinite or NaN scalar without changing the registry."""
    u0, u1 = family['double'], family['triple']
    registry.put_scalar(u0, u1, 2.0)
    size = len(registry)
    for value in (float('nan'), float('inf'), -float('inf'), 'inf'):
        with pytest.raises(conversion.InvalidScalarError):
            registry.put_scalar(u0, u1, value)
        with pytest.raises(conversion.InvalidScalarError):
            registry.put_scalar(u1, u0, value)
    assert registry.get_scalar(u0, u1) == 2.0
    assert registry.get_scalar(u1, u0) is None
    assert len(registry) == size
    assert registry.convert(1.0, u1, u0).quantity == 0.5


def test_invalid_registrations(registry, family):
    """Registration requires units and a callable function."""
    u0, u1 = family['double'], family['triple']
    with pytest.raises(TypeError):
        registry.put_function(u0, u1, 2.0)
    with pytest.raises(TypeError):
        registry.put_scalar(None, u1, 2.0)
    with pytest.raises(TypeError):
        registry.put_function(u0, 'tu', abs)
    assert (u0, u1) not in registry


def test_cross_family(registry):
    """Fail to convert between unrelated units."""
    cases = [
        (units.METRE, units.KELVIN),
        (units.SECOND, units.GRAM),
        (units.RADIAN, units.NAUTICAL_MILE),
        (unit.Unit('m'), units.METRE),
    ]
    for u0, u1 in cases:
        with pytest.raises(conversion.UnsupportedConversionError) as err:
            registry.convert(1.0, u0, u1)
        assert str(u0) in str(err.value)
        assert str(u1) in str(err.value)
    with pytest.raises(TypeError):
        registry.convert(1.0, units.METRE, 'km')


def test_cross_family_registered(registry):
    """A registered conversion may connect unrelated units."""
    registry.put_scalar(units.SECOND, units.METRE, 299792458.0)
    result = registry.convert(2.0, units.SECOND, units.METRE)
    assert result.quantity == 2 * 299792458.0
    result = registry.convert(299792458.0, units.METRE, units.SECOND)
    assert result.quantity == 1.0
    with pytest.raises(conversion.UnsupportedConversionError):
        registry.convert(1.0, units.SECOND, units.KILOMETRE)


def test_overflow(registry, family):
    """Detect overflow in every conversion strategy."""
    assert registry.convert(MAX, units.KILOMETRE, units.NAUTICAL_MILE).quantity < MAX
    with pytest.raises(unit.ConversionOverflowError):
        registry.convert(MAX, units.NAUTICAL_MILE, units.INCH)
    with pytest.raises(unit.ConversionOverflowError):
        registry.convert(MAX, units.NAUTICAL_MILE, units.METRE)
    u0, u1 = family['double'], family['triple']
    registry.put_scalar(u0, u1, 0.5)
    with pytest.raises(unit.ConversionOverflowError):
        registry.convert(MAX, u1, u0)
    registry.put_function(u1, u0, lambda x: x * 10.0)
    with pytest.raises(unit.ConversionOverflowError):
        registry.convert(MAX, u1, u0)
    result = registry.convert(float('-inf'), u1, u0)
    assert result.quantity == float('-inf')


def test_independent_registries(family):
    """Registrations affect only one registry."""
    u0, u1 = family['double'], family['triple']
    r0 = conversion.ConversionRegistry()
    r1 = conversion.ConversionRegistry()
    r0.put_scalar(u0, u1, 10.0)
    assert len(r0) == 1
    assert len(r1) == 0
    assert r0.convert(1.0, u0, u1).quantity == 10.0
    assert r1.convert(1.0, u0, u1).quantity == pytest.approx(2 / 3)
    assert conversion.DEFAULT.get_scalar(u0, u1) is None


def test_copy(registry, family):
    """A copy has the same entries but changes independently."""
    u0, u1 = family['double'], family['triple']
    registry.put_function(u0, u1, abs)
    copied = registry.copy()
    assert len(copied) == len(registry)
    assert copied.get_function(u0, u1) is abs
    copied.put_scalar(u1, u0, 2.0)
    assert registry.get_scalar(u1, u0) is None
    assert copied.get_scalar(units.KILOMETRE, units.METRE) == 1000.0


def test_initial_entries(family):
    """Create a registry with initial conversions."""
    u0, u1 = family['double'], family['triple']
    registry = conversion.ConversionRegistry(
        scalars={(u0, u1): 8.0},
        functions={(u1, u0): lambda x: x - 1.0},
    )
    assert len(registry) == 2
    assert registry.convert(1.0, u0, u1).quantity == 8.0
    assert registry.convert(1.0, u1, u0).quantity == 0.0
    with pytest.raises(conversion.InvalidScalarError):
        conversion.ConversionRegistry(scalars={(u0, u1): 0.0})


def test_load(registry):
    """Register scalars from string definitions."""
    config = {
        'mile -> yard': '1760',
        'ft->in': '12.0',
        'NM -> mi': '1.1507794480235425',
    }
    registry.load(config)
    assert registry.get_scalar(units.MILE, units.YARD) == 1760.0
    assert registry.get_scalar(units.FOOT, units.INCH) == 12.0
    assert registry.convert(1.0, units.NAUTICAL_MILE, units.MILE).quantity == (
        1.1507794480235425
    )
    with pytest.raises(ValueError):
        registry.load({'mile yard': '1760'})
    with pytest.raises(KeyError):
        registry.load({'mile -> furlong': '8'})
    with pytest.raises(conversion.InvalidScalarError):
        registry.load({'mile -> yard': '0'})
    assert registry.get_scalar(units.MILE, units.YARD) == 1760.0


def test_load_is_atomic(registry):
    """A failing load registers none of its entries."""
    size = len(registry)
    failures = {
        ValueError: {'mile -> yard': '1760', 'ft -> in': 'twelve'},
        KeyError: {'mile -> yard': '1760', 'mile -> furlong': '8'},
        conversion.InvalidScalarError: {
            'mile -> yard': '1760',
            'ft -> in': 'nan',
        },
    }
    for error, config in failures.items():
        with pytest.raises(error):
            registry.load(config)
        assert registry.get_scalar(units.MILE, units.YARD) is None
        assert registry.get_scalar(units.FOOT, units.INCH) is None
        assert len(registry) == size
    registry.put_scalar(units.MILE, units.YARD, 1760.0)
    with pytest.raises(ValueError):
        registry.load({'mile -> yard': '1759', 'ft -> in': 'twelve'})
    assert registry.get_scalar(units.MILE, units.YARD) == 1760.0


def test_from_environment():
    """Create a standard registry with additional scalars."""
    registry = conversion.ConversionRegistry.from_environment(
        {'mile -> foot': '5280'}
    )
    assert registry.get_scalar(units.MILE, units.FOOT) == 5280.0
    assert len(registry) == len(conversion.STANDARD_SCALARS) + 1


def test_module_functions(family):
    """The module-level functions use the default registry."""
    u0, u1 = family['double'], family['triple']
    assert conversion.convert(1000.0, units.METRE, units.KILOMETRE).quantity == 1.0
    assert conversion.put_scalar(u0, u1, 6.0) is None
    assert conversion.DEFAULT.get_scalar(u0, u1) == 6.0
    assert conversion.put_function(u1, u0, abs) is None
    assert conversion.DEFAULT.get_function(u1, u0) is abs
    assert conversion.convert(measure.Measure(-1.0, u1), u0).quantity == 1.0


def test_concurrent_registration(registry, family):
    """Concurrent registrations leave the registry consistent."""
    u0, u1 = family['double'], family['triple']
    scalars = [float(i) for i in range(1, 201)]
    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(lambda k: registry.put_scalar(u0, u1, k), scalars))
    assert registry.get_scalar(u0, u1) in scalars
    assert len(registry) == len(conversion.STANDARD_SCALARS) + 1


def test_logging(registry, family, caplog):
    """Log registrations and the chosen strategy."""
    u0, u1 = family['double'], family['triple']
    caplog.set_level(logging.DEBUG, logger='measures')
    registry.put_scalar(u0, u1, 2.0)
    registry.put_scalar(u0, u1, 3.0)
    registry.convert(1.0, u1, u0)
    messages = [record.getMessage() for record in caplog.records]
    assert "Registered scalar du -> tu: 2.0" in messages
    assert "Replaced scalar du -> tu: 3.0 (was 2.0)" in messages
    assert "tu -> du: divisor 3.0" in messages
    levels = {record.getMessage(): record.levelno for record in caplog.records}
    assert levels["Replaced scalar du -> tu: 3.0 (was 2.0)"] == logging.INFO


def test_error_messages():
    """Errors describe the units involved."""
    error = conversion.UnsupportedConversionError(units.METRE, units.KELVIN)
    assert str(error) == "Conversion from 'm' to 'K' is not supported"
    error = conversion.InvalidScalarError(units.METRE, units.KELVIN, 0.0)
    assert str(error) == "Can't register scalar 0.0 from 'm' to 'K'"
