"""
Per-scenario comparison inputs: test data, an optional inbound reference message,
and configuration flags. A context is immutable once built and may be shared
between threads.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..models import Message


TEST_DATA_PREFIX = "testData."
INBOUND_PREFIX = "inbound."


class ComparisonContext:
    """
    Read-only bag of values consulted while comparing.

    Source references on field rules resolve against this context:

    - "testData.<key>" reads the test data map
    - "inbound.<TAG>.<position>" reads a field of the first <TAG> segment of the
      inbound message (the field looked up is "<TAG>.<position>")
    - anything else is returned unchanged as a literal
    """

    __slots__ = ('_test_data', '_inbound_message', '_config')

    def __init__(self, test_data: Optional[Mapping[str, Any]] = None,
                 inbound_message: Optional[Message] = None,
                 config: Optional[Mapping[str, Any]] = None):
        object.__setattr__(self, '_test_data', MappingProxyType(dict(test_data or {})))
        object.__setattr__(self, '_inbound_message', inbound_message)
        object.__setattr__(self, '_config', MappingProxyType(dict(config or {})))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def test_data(self) -> Mapping[str, Any]:
        return self._test_data

    @property
    def inbound_message(self) -> Optional[Message]:
        return self._inbound_message

    @property
    def config(self) -> Mapping[str, Any]:
        return self._config

    def get_test_data_value(self, key: str) -> Any:
        return self._test_data.get(key)

    def get_test_data_string(self, key: str) -> Optional[str]:
        """Return a test data value as text, or None when the key is absent."""
        value = self._test_data.get(key)
        return str(value) if value is not None else None

    def has_test_data(self, key: str) -> bool:
        return key in self._test_data

    def get_inbound_field_value(self, field_path: Optional[str]) -> Optional[str]:
        """
        Look up "TAG.POSITION" in the inbound message.

        Returns:
            The field value, or None when there is no inbound message, the path has
            no dot, or the segment or field is absent
        """
        if self._inbound_message is None or not field_path:
            return None
        tag, separator, _ = field_path.partition('.')
        if not separator:
            return None
        segment = self._inbound_message.get_first_segment_by_tag(tag)
        if segment is None:
            return None
        return segment.get_field_value(field_path)

    def get_config_value(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get_config_bool(self, key: str, default: bool) -> bool:
        """Read a flag given as bool or "true"/"false" text; anything else yields the default."""
        value = self._config.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text == 'true':
                return True
            if text == 'false':
                return False
        return default

    def resolve_source(self, source: Optional[str]) -> Optional[str]:
        """Resolve a dynamic expected-value reference."""
        if source is None:
            return None
        if source.startswith(TEST_DATA_PREFIX):
            return self.get_test_data_string(source[len(TEST_DATA_PREFIX):])
        if source.startswith(INBOUND_PREFIX):
            return self.get_inbound_field_value(source[len(INBOUND_PREFIX):])
        return source

    def with_config(self, **changes) -> 'ComparisonContext':
        """Return a copy whose config has the given keys replaced."""
        return ComparisonContext(self._test_data, self._inbound_message, {**self._config, **changes})

    def with_config_defaults(self, defaults: Mapping[str, Any]) -> 'ComparisonContext':
        """Return a copy where keys already present in this context's config win over `defaults`."""
        return ComparisonContext(self._test_data, self._inbound_message, {**dict(defaults or {}), **self._config})

    def with_test_data(self, **values) -> 'ComparisonContext':
        return ComparisonContext({**self._test_data, **values}, self._inbound_message, self._config)

    def with_inbound_message(self, inbound_message: Optional[Message]) -> 'ComparisonContext':
        return ComparisonContext(self._test_data, inbound_message, self._config)

    def __repr__(self) -> str:
        inbound = str(self._inbound_message) if self._inbound_message is not None else None
        return (f"ComparisonContext(test_data={len(self._test_data)} keys, "
                f"inbound={inbound}, config={dict(self._config)})")
