from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Union

from vitrine._exceptions import ReadError, RecordError
from vitrine._utils import splice_fingerprint

if TYPE_CHECKING:
    from vitrine._environment import BaseEnvironment

logger = logging.getLogger("vitrine.asset")

# 128 KB
CHUNK_SIZE = 131072

RECORD_CLASS = "StaticAsset"
_RECORD_FIELDS: Dict[str, Any] = {
    "logical_path": str,
    "pathname": str,
    "content_type": str,
    "mtime": str,
    "digest": str,
    "length": int,
    "environment_digest": str,
}


class StaticAsset:
    """
    A resolved asset as it looked on disk at one point in time.

    Snapshots are values: once built their metadata never changes. Use
    `is_fresh` to learn whether the file they describe still matches, and
    resolve the asset again when it doesn't.

    Args:
        environment: The environment the asset was resolved in.
        logical_path: Environment-relative name, e.g. ``"js/app.js"``.
        pathname: Location of the file on disk.
        digest: Content digest, when the caller already computed it.
    """

    def __init__(
        self,
        environment: BaseEnvironment,
        logical_path: str,
        pathname: Union[str, Path],
        digest: Optional[str] = None,
    ) -> None:
        self._environment = environment

        self._logical_path = str(logical_path)
        self._pathname = Path(pathname)
        self._content_type = environment.content_type_of(str(pathname))

        stat = environment.stat(self._pathname)
        if stat is None:
            raise ReadError(f"No such file: {self._pathname}")

        self._mtime = stat.mtime
        self._length = stat.size
        if digest is None:
            digest = environment.file_digest(self._pathname)
            if digest is None:
                raise ReadError(f"Could not digest {self._pathname}")
        self._digest = digest
        self._environment_digest = environment.digest()

    @classmethod
    def from_record(cls, environment: BaseEnvironment, record: Mapping[str, Any]) -> "StaticAsset":
        """
        Rebuild a snapshot from a record produced by `as_record`.

        Persisted fields are trusted as they are; nothing is re-read from disk.
        """
        if not isinstance(record, Mapping):
            raise RecordError(f"Expected a mapping, got {type(record).__name__}")

        if record.get("class") != RECORD_CLASS:
            raise RecordError(f"Unsupported record class: {record.get('class')!r}")

        for key, expected_type in _RECORD_FIELDS.items():
            if key not in record:
                raise RecordError(f"The record is missing the '{key}' field.")
            value = record[key]
            # bool is an int subclass, but never a valid length
            if not isinstance(value, expected_type) or isinstance(value, bool):
                raise RecordError(f"The '{key}' field should be {expected_type.__name__}, but got {value!r}.")

        try:
            mtime = datetime.fromisoformat(record["mtime"])
        except ValueError as e:
            raise RecordError(f"Invalid mtime: {record['mtime']!r}") from e
        if mtime.tzinfo is None:
            raise RecordError(f"The mtime should carry a UTC offset, but got {record['mtime']!r}.")

        asset = cls.__new__(cls)
        asset._environment = environment
        asset._logical_path = record["logical_path"]
        asset._pathname = Path(record["pathname"])
        asset._content_type = record["content_type"]
        asset._mtime = mtime
        asset._length = record["length"]
        asset._digest = record["digest"]
        asset._environment_digest = record["environment_digest"]
        return asset

    @classmethod
    def from_json(cls, environment: BaseEnvironment, data: Union[str, bytes]) -> "StaticAsset":
        try:
            record = json.loads(data)
        except ValueError as e:
            raise RecordError("The record is not valid JSON.") from e
        return cls.from_record(environment, record)

    @property
    def environment(self) -> BaseEnvironment:
        return self._environment

    @property
    def logical_path(self) -> str:
        return self._logical_path

    @property
    def pathname(self) -> Path:
        return self._pathname

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def mtime(self) -> datetime:
        return self._mtime

    @property
    def length(self) -> int:
        return self._length

    @property
    def digest(self) -> str:
        return self._digest

    @property
    def environment_digest(self) -> str:
        return self._environment_digest

    @property
    def digest_path(self) -> str:
        """
        The logical path with the digest spliced in, e.g. ``app-<digest>.js``.
        """
        return splice_fingerprint(self._logical_path, self._digest)

    @property
    def dependencies(self) -> List["StaticAsset"]:
        return []

    @property
    def body(self) -> bytes:
        return self._pathname.read_bytes()

    def to_path(self) -> str:
        return str(self._pathname)

    def __iter__(self) -> Iterator[bytes]:
        with self._pathname.open("rb") as f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    def is_fresh(self) -> bool:
        """
        Check whether the file still matches this snapshot.

        The checks run cheapest first:

        1. A different environment digest makes every snapshot stale.
        2. A file not modified after ``mtime`` is fresh.
        3. Otherwise the file is fresh only if its content digest is unchanged.
        """
        if self._environment.digest() != self._environment_digest:
            logger.debug("Environment digest changed for %s", self._logical_path)
            return False

        stat = self._environment.stat(self._pathname)
        if stat is not None and self._mtime >= stat.mtime:
            return True

        digest = self._environment.file_digest(self._pathname)
        return digest is not None and digest == self._digest

    def is_stale(self) -> bool:
        return not self.is_fresh()

    def as_record(self) -> Dict[str, Any]:
        return {
            "class": RECORD_CLASS,
            "logical_path": self._logical_path,
            "pathname": str(self._pathname),
            "content_type": self._content_type,
            "mtime": self._mtime.isoformat(),
            "digest": self._digest,
            "length": self._length,
            "environment_digest": self._environment_digest,
        }

    def to_json(self) -> str:
        return json.dumps(self.as_record())

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, StaticAsset):
            return NotImplemented
        return (
            type(other) is type(self)
            and other.pathname == self.pathname
            and other.mtime == self.mtime
            and other.digest == self.digest
        )

    def __hash__(self) -> int:
        return hash((type(self), self._pathname, self._mtime, self._digest))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._logical_path!r} digest={self._digest[:8]}>"
