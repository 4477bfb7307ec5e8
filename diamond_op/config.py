"""
Configuration for text decoding, built from :class:`ConfigItem` descriptors on a :class:`ConfigSection`, which perform
basic validation / normalization of each value as it is set.
"""

from __future__ import annotations

import codecs
from collections import ChainMap
from pathlib import Path
from typing import Union, Callable, Iterable, Any, Mapping, Type

import yaml

__all__ = ['ConfigItem', 'ConfigSection', 'ReaderConfig', 'ConfigException', 'InvalidConfigError']

ConfigMap = Union[Mapping[str, Any], 'ConfigSection', None]


class ConfigItem:
    __slots__ = ('name', 'type', 'default')

    def __init__(self, default: Any, type: Callable[[Any], Any] = None):  # noqa
        self.type = type
        self.default = default

    def __set_name__(self, owner: Type[ConfigSection], name: str):
        self.name = name
        owner._config_items_[name] = self

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance.__dict__.get(self.name, self.default)

    def __set__(self, instance: ConfigSection, value: Any):
        if self.type is not None:
            try:
                value = self.type(value)
            except (TypeError, ValueError, LookupError) as e:
                raise InvalidConfigError(f'Invalid value for {self.name}={value!r}: {e}') from e
        instance.__dict__[self.name] = value


class ConfigMeta(type):
    """
    Metaclass for ConfigSections.  Necessary to initialize the ``_config_items_`` dict for ConfigItem registration
    because the contents of a class is evaluated before ``__init_subclass__`` is called.
    """
    _config_items_: dict[str, ConfigItem]

    @classmethod
    def __prepare__(mcs, name: str, bases: Iterable[type], **kwargs) -> dict[str, Any]:
        config_items = {}
        for base in bases:
            if isinstance(base, mcs):
                config_items.update(base._config_items_)
        return {'_config_items_': config_items}


class ConfigSection(metaclass=ConfigMeta):
    _config_items_: dict[str, ConfigItem]

    def __init__(self, config: ConfigMap = None, **kwargs):
        """
        If any of the provided keys are not expected, then an :class:`InvalidConfigError` will be raised.  Values of
        ``None`` are ignored so that unset command line options do not replace values from a config file.

        :param config: A dict, other mapping, or ConfigSection containing values that should be used in this section
        :param kwargs: Additional keyword arguments that take precedence over the values in ``config``
        """
        if isinstance(config, ConfigSection):
            config = config.__dict__
        kwargs = {key: val for key, val in kwargs.items() if val is not None}
        config_map = ChainMap(kwargs, config or {})
        if bad := set(config_map).difference(self._config_items_):
            raise InvalidConfigError(f'Invalid configuration - unsupported options: {", ".join(sorted(bad))}')
        for key, val in config_map.items():
            if val is not None:
                setattr(self, key, val)

    def _as_dict_(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in self._config_items_}

    def __eq__(self, other: Any) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented
        return self._as_dict_() == other._as_dict_()

    def __repr__(self) -> str:
        settings = ', '.join(f'{k}={v!r}' for k, v in sorted(self._as_dict_().items()))
        return f'<{self.__class__.__name__}({settings})>'


def _encoding(value: str) -> str:
    return codecs.lookup(value).name


def _errors(value: str) -> str:
    codecs.lookup_error(value)
    return value


class ReaderConfig(ConfigSection):
    """Settings that control how bytes read from each source are decoded into lines of text"""

    encoding: str = ConfigItem('utf-8', type=_encoding)
    errors: str = ConfigItem('strict', type=_errors)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], **overrides) -> ReaderConfig:
        """
        :param path: Path to a YAML file containing a mapping of config keys to values
        :param overrides: Values that should take precedence over those in the file
        :return: A new ReaderConfig initialized from the given file
        """
        path = Path(path).expanduser()
        with path.open('r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidConfigError(f'Invalid YAML in {path.as_posix()}: {e}') from e

        if data is None:
            data = {}
        elif not isinstance(data, Mapping):
            raise InvalidConfigError(f'Invalid configuration in {path.as_posix()} - expected a mapping')
        return cls(data, **overrides)


class ConfigException(Exception):
    """Base exception for config-related errors"""


class InvalidConfigError(ConfigException):
    """Raised when invalid config items are provided when initializing a ConfigSection"""
