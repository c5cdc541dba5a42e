"""
NPM package references disclosed by static assets.

Parses ``"name":"version"`` declarations and ``/node_modules/<name>``
path disclosures, and applies heuristic registry name/version rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from jsminer.patterns import DEPENDENCY_ENTRY

MAX_NAME_LENGTH = 214

NAME_BLACKLIST = frozenset({"node_modules", "favicon.ico"})

_FORBIDDEN_NAME_CHARS = re.compile(r"[~'!()*]")
_NON_REGISTRY_VERSION = re.compile(r"[/@]|git|file|npm|link|bitbucket", re.IGNORECASE)


@dataclass
class NPMPackage:
    """A package name (and optional version) found in an asset."""

    name: str = ""
    version: str | None = None
    name_with_version: str = ""
    disclosed_name_only: bool = False
    _valid: bool | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_declaration(cls, dependency: str) -> "NPMPackage":
        """
        Parse one ``"name":"version"`` entry of a dependency block.

        Unparsable entries produce a package with an empty name, which
        never validates.
        """
        match = DEPENDENCY_ENTRY.search(dependency)
        if not match:
            return cls()
        return cls(name=match.group(1), version=match.group(2), name_with_version=match.group(0))

    @classmethod
    def from_disclosure(cls, name: str) -> "NPMPackage":
        """Build a name-only package from a ``/node_modules/`` path."""
        return cls(name=name, name_with_version=f"/node_modules/{name}", disclosed_name_only=True)

    @property
    def key(self) -> str:
        """
        Identity used to verify each package once per resource.

        Registry lookups depend on the name alone (the organization for
        scoped names), so a declaration and a ``/node_modules/`` disclosure
        of one package share a key. Non-registry versions keep theirs.
        """
        if not self.is_version_valid_npm():
            return f"{self.name}|{self.version or ''}"
        if self.is_scoped:
            return f"@{self.org_name}"
        return self.name

    @property
    def is_scoped(self) -> bool:
        return self.name.startswith("@")

    @property
    def org_name(self) -> str:
        """Organization of a scoped name, ``@org/pkg`` -> ``org``."""
        return self.name.removeprefix("@").split("/", 1)[0]

    @property
    def display_name(self) -> str:
        return self.name_with_version or self.name

    def is_name_valid(self) -> bool:
        """Heuristic registry naming rules."""
        if self._valid is None:
            self._valid = self._check_name()
        return self._valid

    def _check_name(self) -> bool:
        name = self.name
        if not name or len(name) > MAX_NAME_LENGTH:
            return False
        if name.startswith((".", "_")):
            return False
        if name != name.lower():
            return False
        if _FORBIDDEN_NAME_CHARS.search(name):
            return False
        if name.strip() != name:
            return False
        return name not in NAME_BLACKLIST

    def is_version_valid_npm(self) -> bool:
        """
        Whether the version resolves through the public registry.

        Versions carrying a path, a scope, or a git/file/npm/link/bitbucket
        reference point elsewhere. Name-only disclosures have no version
        and are treated as registry packages.
        """
        if self.disclosed_name_only:
            return True
        if not self.version:
            return False
        return not _NON_REGISTRY_VERSION.search(self.version)
