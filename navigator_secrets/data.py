from typing import Any, Optional, Union
from collections.abc import Iterator, Mapping, MutableMapping
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from .exceptions import CorruptVaultData


class CredentialRecord(BaseModel):
    """CredentialRecord.
    A stored site credential. Records are immutable once built;
    an update replaces the whole record.
    """
    model_config = ConfigDict(frozen=True, extra='forbid')

    site: str
    username: str
    password: str = Field(repr=False)


RecordLike = Union[CredentialRecord, Mapping[str, Any]]


def as_record(value: RecordLike) -> CredentialRecord:
    """Coerce a mapping with site/username/password into a CredentialRecord."""
    if isinstance(value, CredentialRecord):
        return value
    return CredentialRecord.model_validate(value)


class VaultData(MutableMapping[str, dict[str, CredentialRecord]]):
    """Vault dict-like object.

    Maps a category name to its records (name -> CredentialRecord).
    Lives only for the duration of a single vault operation.
    """

    def __init__(self, data: Optional[Mapping[str, Mapping[str, RecordLike]]] = None) -> None:
        self._data: dict[str, dict[str, CredentialRecord]] = {}
        self._changed = False
        if data:
            for category, records in data.items():
                self._data[category] = {
                    name: as_record(record) for name, record in records.items()
                }

    def __repr__(self) -> str:
        return (
            f'<VaultData [changed:{self._changed}] '
            f'categories={list(self._data.keys())}>'
        )

    # --- Properties ---

    @property
    def is_changed(self) -> bool:
        return self._changed

    @is_changed.setter
    def is_changed(self, value: bool) -> None:
        self._changed = value

    @property
    def empty(self) -> bool:
        return not bool(self._data)

    # --- Merge policy ---

    def upsert(
        self,
        category: str,
        name: str,
        record: RecordLike,
        update: bool = False
    ) -> bool:
        """upsert.

            Insert a record, or replace an existing one only when asked to.
        Args:
            category (str): category name, created empty if missing.
            name (str): record name inside the category.
            record (RecordLike): the credential to store.
            update (bool): replace the record when the name already exists.

        Returns:
            bool: True if the stored record changed.
        """
        record = as_record(record)
        records = self._data.setdefault(category, {})
        if name in records and not update:
            return False
        records[name] = record
        self._changed = True
        return True

    def get_record(self, category: str, name: str) -> Optional[CredentialRecord]:
        return self._data.get(category, {}).get(name)

    def categories(self) -> list[str]:
        return list(self._data.keys())

    def names(self, category: str) -> list[str]:
        return list(self._data.get(category, {}).keys())

    # --- Serialization helpers ---

    def to_dict(self) -> dict:
        """Return a plain nested dict (for persistence)."""
        return {
            category: {
                name: record.model_dump() for name, record in records.items()
            }
            for category, records in self._data.items()
        }

    @classmethod
    def from_dict(cls, document: Mapping[str, Any]) -> "VaultData":
        """from_dict.

            Build a VaultData from a parsed vault document.
        Raises:
            CorruptVaultData: the document is not a category -> name -> record mapping.
        """
        for category, records in document.items():
            if not isinstance(records, Mapping):
                raise CorruptVaultData(
                    f"Category {category!r} must be an object"
                )
            for name, record in records.items():
                if not isinstance(record, Mapping):
                    raise CorruptVaultData(
                        f"Record {category!r}/{name!r} must be an object"
                    )
        try:
            return cls(document)
        except ValidationError as err:
            # error details only, never the input values
            details = '; '.join(
                f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}"
                for e in err.errors()
            )
            raise CorruptVaultData(f"Invalid vault record ({details})") from None

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> dict[str, CredentialRecord]:
        return self._data[key]

    def __setitem__(self, key: str, value: Mapping[str, RecordLike]) -> None:
        self._data[key] = {name: as_record(record) for name, record in value.items()}
        self._changed = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._changed = True
