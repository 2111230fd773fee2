from __future__ import annotations

import inspect
import re
import typing
from typing import Any

from nautilus_gen.codec import BorshReader, CodecError, IdlType, collect_defined, decode, encode, layout_from_hints
from nautilus_gen.errors import RecordDecodeError
from nautilus_gen.objects.base import CREATE_EXTRAS, INDEX, NautilusObject


class Record(NautilusObject):
    """
    Base class for program tables.

    Subclasses declare their stored fields as class annotations:

        class Person(Record):
            id: u32
            name: str
            authority: Pubkey

    Field values are available as attributes once the record is loaded.
    """

    __nautilus_abstract__ = True
    __nautilus_requires__ = (INDEX,)
    __nautilus_create_requires__ = CREATE_EXTRAS
    __nautilus_pda__ = True

    _data: dict[str, Any] | None = None

    @classmethod
    def table_name(cls) -> str:
        return re.sub(r"(?<!^)(?=[A-Z])", "_", cls.__name__).lower()

    @classmethod
    def field_names(cls) -> list[str]:
        names: list[str] = []
        for klass in reversed(cls.__mro__):
            if not (isinstance(klass, type) and issubclass(klass, Record)) or klass is Record:
                continue
            for name in inspect.get_annotations(klass):
                if not name.startswith("_") and name not in names:
                    names.append(name)
        return names

    @classmethod
    def _hints(cls) -> dict[str, Any]:
        return typing.get_type_hints(cls, include_extras=True)

    @classmethod
    def record_layout(cls) -> list[tuple[str, IdlType]]:
        return layout_from_hints(cls.__name__, cls.field_names(), cls._hints())

    def _defined(self) -> dict[str, type]:
        hints = self._hints()
        return collect_defined(hints[n] for n in self.field_names())

    def load(self) -> None:
        info = self.account()
        name = type(self).__name__
        if not info.data:
            raise RecordDecodeError(name, str(info.key), "account holds no data; is it initialised?")
        reader = BorshReader(info.data)
        defined = self._defined()
        try:
            values = {field: decode(t, reader, defined) for field, t in self.record_layout()}
            reader.finish()
        except CodecError as e:
            raise RecordDecodeError(name, str(info.key), str(e)) from e
        self._data = values

    @property
    def data(self) -> dict[str, Any]:
        if self._data is None:
            raise RuntimeError(f"{type(self).__name__} data is not loaded")
        return dict(self._data)

    def write(self, **values: Any) -> None:
        """Merge `values` into the stored fields and re-encode the account data."""
        current = dict(self._data or {})
        unknown = set(values) - set(self.field_names())
        if unknown:
            raise AttributeError(f"{type(self).__name__} has no fields {sorted(unknown)}")
        current.update(values)
        layout = self.record_layout()
        missing = [field for field, _ in layout if field not in current]
        if missing:
            raise ValueError(f"{type(self).__name__}: missing values for {missing}")
        defined = self._defined()
        self.account().data[:] = b"".join(encode(t, current[field], defined) for field, t in layout)
        self._data = current

    def __getattr__(self, name: str) -> Any:
        data = self.__dict__.get("_data")
        if data is not None and name in data:
            return data[name]
        raise AttributeError(f"{type(self).__name__} has no attribute {name!r}")
