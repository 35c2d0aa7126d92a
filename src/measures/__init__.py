import collections.abc
import configparser
import contextlib
import json
import logging
import os
import pathlib
import sys
import typing

from measures.core import iotools


# read version from installed package
from importlib.metadata import PackageNotFoundError, version
with contextlib.suppress(PackageNotFoundError):
    __version__ = version("measures")


class Environment(collections.abc.Mapping):
    """A collection of environmental settings.

    Each instance provides read-only access to one section of the first
    ``measures.ini`` file found in the standard search paths. A section that
    does not exist in the file is empty.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        """The name of the configuration section to select."""
        home = pathlib.Path('~').expanduser()
        paths = [
            pathlib.Path.cwd(), # The current working directory
            home, # The user's home directory
            home / '.config', # Linux standard (local)
            '/etc/measures', # Linux standard (global)
            os.environ.get('MEASURES_INI'), # A known environment variable
            pathlib.Path(__file__).parent, # The package top
        ]
        config = configparser.ConfigParser()
        # Preserve case in keys, since unit symbols are case-sensitive.
        config.optionxform = str
        path = iotools.search(paths, 'measures.ini')
        if path is not None:
            config.read(path)
        self._config = (
            dict(config[self.name]) if config.has_section(self.name)
            else {}
        )
        self.path = path

    def __len__(self) -> int:
        """The number of available parameter values."""
        return len(self._config)

    def __iter__(self):
        """Iterate over available parameter values."""
        yield from self._config

    def __getitem__(self, key: str):
        """Access parameter values by mapping key."""
        if key in self._config:
            return self._config[key]
        raise KeyError(
            f"Section {self.name!r} has no value for {key!r}"
        ) from None

    def __str__(self) -> str:
        return json.dumps(
            self._config,
            indent=4,
            sort_keys=True,
        )

    def __repr__(self) -> str:
        return f"{__package__}.{self.name}({self.path}):\n{self}"


def setup_logging(
    environment: typing.Optional[typing.Mapping[str, str]]=None,
) -> logging.Logger:
    """Configure the package logger from the ``[logging]`` settings.

    This function configures only the ``measures`` logger, and only once. It
    never modifies the root logger.

    Parameters
    ----------
    environment : mapping, optional
        The logging settings. Defaults to ``Environment('logging')``.

    Returns
    -------
    `logging.Logger`
        The package logger.

    Raises
    ------
    `ValueError`
        The configured level is not a known logging level.
    """
    if environment is None:
        environment = Environment('logging')
    level_str = environment.get('level', 'WARNING').upper()
    numeric_level = getattr(logging, level_str, None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level_str}")
    logger = logging.getLogger(__name__)
    logger.setLevel(numeric_level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
            )
        )
        logger.addHandler(handler)
    return logger
