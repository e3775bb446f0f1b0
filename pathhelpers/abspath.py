from __future__ import annotations

import os
from typing import Iterable, Optional, Union


PathInput = Union[str, "os.PathLike[str]", "AbsolutePath"]


class AbsolutePath:
    """Immutable, fully resolved filesystem path.

    The wrapped string is made absolute against the process working directory
    at construction. Equality ignores case, matching how archive entry names
    are compared elsewhere in the package.
    """

    __slots__ = ("_path",)

    def __init__(self, path: PathInput):
        raw = os.fspath(path)
        if not raw:
            raise ValueError("Path cannot be empty")
        object.__setattr__(self, "_path", os.path.abspath(raw))

    def __setattr__(self, name, value):
        raise AttributeError("AbsolutePath is immutable")

    @classmethod
    def create(cls, path: PathInput) -> "AbsolutePath":
        if isinstance(path, AbsolutePath):
            return path
        return cls(path)

    @classmethod
    def try_create(cls, path: Optional[PathInput]) -> Optional["AbsolutePath"]:
        if path is None:
            return None
        try:
            return cls.create(path)
        except (TypeError, ValueError):
            return None

    @property
    def path(self) -> str:
        return self._path

    @property
    def parent(self) -> Optional["AbsolutePath"]:
        head = os.path.dirname(self._path)
        if not head or head == self._path:
            return None
        return AbsolutePath(head)

    @property
    def name(self) -> str:
        return os.path.basename(self._path)

    @property
    def stem(self) -> str:
        return os.path.splitext(self.name)[0]

    @property
    def extension(self) -> str:
        return os.path.splitext(self.name)[1]

    def __truediv__(self, other: Union[str, Iterable[str]]) -> "AbsolutePath":
        if isinstance(other, (str, os.PathLike)):
            return AbsolutePath(os.path.join(self._path, os.fspath(other)))
        p = self._path
        for segment in other:
            p = os.path.join(p, segment)
        return AbsolutePath(p)

    def __fspath__(self) -> str:
        return self._path

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"AbsolutePath({self._path!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, AbsolutePath):
            return NotImplemented
        return self._path.casefold() == other._path.casefold()

    def __hash__(self) -> int:
        return hash(self._path.casefold())

    # Convenience used by the archive layers
    def is_file(self) -> bool:
        return os.path.isfile(self._path)

    def is_dir(self) -> bool:
        return os.path.isdir(self._path)

    def is_symlink(self) -> bool:
        return os.path.islink(self._path)

    def create_directory(self) -> "AbsolutePath":
        os.makedirs(self._path, exist_ok=True)
        return self
