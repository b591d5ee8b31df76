"""Permission registry — the catalog of permission names the bot knows about.

A definition maps a permission name to the capability names it bundles (a
group publishes its member permissions this way). A dependency declares that
one name requires another, e.g. a subcommand on its parent command.

Every mutating call returns a *disposer*: a zero-argument callable that undoes
exactly that registration. Disposers are idempotent and never remove a newer
registration made under the same name.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger("gatekeeper.permissions.registry")


class PermissionRegistry:
    """In-memory registry of permission definitions and dependencies."""

    def __init__(self) -> None:
        self._definitions: dict[str, tuple[str, ...]] = {}
        self._dependencies: dict[str, set[str]] = {}
        # Bumped per define() so stale disposers can tell they were superseded
        self._generation: dict[str, int] = {}

    # -- Definitions ---------------------------------------------------------

    def define(self, name: str, inherits: Iterable[str] = ()) -> Callable[[], None]:
        """Register *name* bundling *inherits*, replacing any earlier definition."""
        if not name:
            raise ValueError("Permission name must not be empty")
        generation = self._generation.get(name, 0) + 1
        self._generation[name] = generation
        self._definitions[name] = tuple(sorted(set(inherits)))
        logger.debug("Defined permission %s (%d inherited)", name, len(self._definitions[name]))

        def dispose() -> None:
            if self._generation.get(name) != generation:
                return
            self._definitions.pop(name, None)
            self._generation.pop(name, None)
            logger.debug("Disposed permission %s", name)

        return dispose

    def get(self, name: str) -> tuple[str, ...] | None:
        """Return the names bundled under *name*, or None if undefined."""
        return self._definitions.get(name)

    def is_defined(self, name: str) -> bool:
        return name in self._definitions

    # -- Dependencies --------------------------------------------------------

    def depend(self, name: str, dependency: str) -> Callable[[], None]:
        """Declare that *name* requires *dependency*."""
        self._dependencies.setdefault(name, set()).add(dependency)

        def dispose() -> None:
            deps = self._dependencies.get(name)
            if deps is None:
                return
            deps.discard(dependency)
            if not deps:
                del self._dependencies[name]

        return dispose

    def dependencies(self, name: str) -> set[str]:
        """Return the direct dependencies declared for *name*."""
        return set(self._dependencies.get(name, ()))

    # -- Listing -------------------------------------------------------------

    def list(self) -> list[str]:
        """Every known permission name, sorted.

        Names only referenced as dependencies count as known too.
        """
        names = set(self._definitions)
        names.update(self._dependencies)
        for deps in self._dependencies.values():
            names.update(deps)
        return sorted(names)

    def unknown(self, names: Iterable[str]) -> list[str]:
        """Return the entries of *names* that are not known, in input order."""
        known = set(self.list())
        return [n for n in names if n not in known]
