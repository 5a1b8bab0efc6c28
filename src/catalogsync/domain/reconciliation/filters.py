"""Include/exclude name filtering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class NameFilter:
    """Decides whether a short entity name is catalogued.

    A name passes when the include list is empty or contains it, and the
    exclude list does not contain it. An explicit include always wins.
    """

    include: frozenset[str] = frozenset()
    exclude: frozenset[str] = frozenset()

    @classmethod
    def from_lists(
        cls, include: Iterable[str] | None = None, exclude: Iterable[str] | None = None
    ) -> NameFilter:
        return cls(frozenset(include or ()), frozenset(exclude or ()))

    def catalogues(self, name: str) -> bool:
        if name in self.include:
            return True
        if self.include:
            return False
        return name not in self.exclude

    __call__ = catalogues

    def catalogues_path(self, full_name: str) -> bool:
        """Apply the rule to a dotted full name and every ancestor prefix of it.

        ``include=["sales"]`` admits ``sales.crm.accounts``; ``exclude=["sales.tmp"]``
        drops that schema and everything inside it.
        """

        candidates = _prefixes(full_name)
        if any(name in self.include for name in candidates):
            return True
        # Containers of an included path must be reachable.
        if any(entry.startswith(f"{full_name}.") for entry in self.include):
            return True
        if self.include:
            return False
        return not any(name in self.exclude for name in candidates)


def _prefixes(full_name: str) -> list[str]:
    parts = full_name.split(".")
    return [".".join(parts[: index + 1]) for index in range(len(parts))]
