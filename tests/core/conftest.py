import pytest

from measures.core import conversion
from measures.core import unit


@pytest.fixture
def registry():
    """A standard registry that tests may modify freely."""
    return conversion.ConversionRegistry.standard()


@pytest.fixture
def family():
    """A custom family of units, unknown to any registry."""
    base = unit.Unit('u')
    return {
        'base': base,
        'double': unit.Unit(
            'du',
            base=base,
            to_base=lambda x: x * 2.0,
            from_base=lambda b: b / 2.0,
        ),
        'triple': unit.Unit(
            'tu',
            base=base,
            to_base=lambda x: x * 3.0,
            from_base=lambda b: b / 3.0,
        ),
    }
