import collections
import typing


class DisplayMap:
    """Look up display fields on an object for `str.format_map`."""

    def __init__(self, instance: 'ReprStrMixin') -> None:
        self._instance = instance
        self._fields = instance.display

    def __getitem__(self, field: str) -> str:
        """The string value of the attribute registered for `field`."""
        value = getattr(self._instance, self._fields[field])
        if callable(value):
            value = value()
        return str(value)


class Display(collections.UserDict):
    """Format templates and the attributes that fill them.

    The keys ``'__str__'`` and ``'__repr__'`` map to format strings. Every
    other key is a field in one of those strings, and maps to the name of the
    attribute (or zero-argument method) that supplies its value.
    """

    def __init__(self, **templates: str) -> None:
        super().__init__(__str__='', __repr__='')
        self.data.update(templates)

    def register(self, *names: str, **pairs: str) -> None:
        """Declare the attributes that supply format fields.

        Parameters
        ----------
        *names : strings
            Attributes that supply the field of the same name.

        **pairs : strings
            Fields and the names of the attributes that supply them, for fields
            whose names differ from their attributes.
        """
        self.data.update({name: name for name in names})
        self.data.update(pairs)


class ReprStrMixin:
    """Build `__str__` and `__repr__` from the templates in `display`."""

    _display = None

    @property
    def display(self) -> typing.Mapping[str, str]:
        """The templates and fields of this object's string forms."""
        if self._display is None:
            self._display = Display()
        return self._display

    def __str__(self) -> str:
        return self._format('__str__')

    def __repr__(self) -> str:
        body = self._format('__repr__') or str(self)
        module = self.__module__.replace('measures.', '')
        return f"{module}.{type(self).__qualname__}({body})"

    def _format(self, template: str) -> str:
        return self.display[template].format_map(DisplayMap(self))


def unique(*items: typing.Hashable) -> typing.List[typing.Hashable]:
    """The distinct members of `items`, in order of first appearance."""
    distinct = []
    for item in items:
        if item not in distinct:
            distinct.append(item)
    return distinct
