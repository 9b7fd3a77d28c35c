"""
Maps stored file references to paths under the configured storage roots.

Two kinds of reference exist:
- Private: ``/system/files/<relative>`` under the private root, used verbatim
- Public: ``sites/default/files/<relative>`` under the public root, URL-decoded

Every result is canonicalized and must stay inside its root.
"""
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

from ..core.config import Settings
from .errors import PathOutsideRootError


@dataclass(frozen=True)
class ResolvedPath:
    """A canonical path known to lie inside ``root``."""
    path: Path
    root: Path
    is_private: bool


class FilePathResolver:
    """Resolves file references against a private and a public root."""

    def __init__(
        self,
        private_root: str,
        public_root: str,
        private_prefix: str = "/system/files",
        public_prefix: str = "sites/default/files/",
    ):
        self._private_root = Path(private_root).resolve()
        self._public_root = Path(public_root).resolve()
        self._private_prefix = private_prefix.rstrip("/")
        self._public_prefix = public_prefix.lstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "FilePathResolver":
        return cls(
            private_root=settings.PRIVATE_FILES_ROOT,
            public_root=settings.PUBLIC_FILES_ROOT,
            private_prefix=settings.PRIVATE_FILES_URL_PREFIX,
            public_prefix=settings.PUBLIC_FILES_URL_PREFIX,
        )

    @property
    def roots(self) -> dict[str, Path]:
        return {"private": self._private_root, "public": self._public_root}

    def is_private(self, reference: str) -> bool:
        return self._is_private_path(self._reference_path(reference))

    def resolve(self, reference: str) -> ResolvedPath:
        """
        Resolve a file reference to a canonical path.

        Raises:
            PathOutsideRootError: If the result escapes its root or is not
                a valid filesystem path
        """
        ref_path = self._reference_path(reference)

        if self._is_private_path(ref_path):
            relative = ref_path[len(self._private_prefix):]
            root = self._private_root
            is_private = True
        else:
            relative = ref_path.lstrip("/")
            if relative.startswith(self._public_prefix):
                relative = relative[len(self._public_prefix):]
            relative = unquote(relative)
            root = self._public_root
            is_private = False

        if "\x00" in relative:
            raise PathOutsideRootError(reference, "Null byte in path")

        candidate = root / relative.lstrip("/")
        resolved = candidate.resolve()

        if not resolved.is_relative_to(root):
            raise PathOutsideRootError(reference)

        return ResolvedPath(path=resolved, root=root, is_private=is_private)

    def _is_private_path(self, ref_path: str) -> bool:
        # Whole path segment only: "/system/filesX" is not private
        return ref_path == self._private_prefix or ref_path.startswith(self._private_prefix + "/")

    @staticmethod
    def _reference_path(reference: str) -> str:
        # Only the path component counts: absolute URLs and query strings
        # (e.g. image style ``?itok=``) are tolerated
        return urlsplit(reference).path
