"""
Rule contracts.

- Rule: metadata shared by every rule (id, display name, required variable kinds,
  categories) plus up to two emission capabilities: a constraint fragment and a
  procedural generator.
- GlobalRule: applies once to the whole grid. Its fragment is emitted verbatim.
- LocalRule: instantiated per placement. Its fragment is boilerplate shared by
  all instances; per-instance constraints come from the generator.
- Generator: callable(groups, all_instances, grid) -> constraint text. For global
  rules `groups` is empty. `all_instances` is the read-only tuple of every
  constraint instance of the puzzle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Iterable, Mapping, Optional

from gridsmith import naming
from gridsmith.state import ConstraintInstance, Grid, Group

__all__ = ["Generator", "Rule", "GlobalRule", "LocalRule", "RULE_TYPES"]

Generator = Callable[
    [tuple[Group, ...], tuple[ConstraintInstance, ...], Grid], str
]


@dataclass(frozen=True, slots=True)
class Rule:
    """
    Immutable rule record assembled by the registry.

    Attributes
    ----------
    id:                 Stable identifier (e.g., "killer-cage").
    name:               Display name.
    description:        Optional human-readable text.
    required_variables: Variable kinds the rule reads, matched by family.
    categories:         Tags used for discovery.
    fragment:           Constraint text (static for globals, boilerplate for locals).
    generator:          Procedural generator.
    requires_regions:   The rule is meaningless on a grid without regions.
    consumes:           Ids of local rules whose instances the generator reads.
    render:             Opaque render description, passed through untouched.
    """

    TYPE: ClassVar[str]

    id: str
    name: str
    description: str = ""
    required_variables: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    fragment: Optional[str] = None
    generator: Optional[Generator] = None
    requires_regions: bool = False
    consumes: tuple[str, ...] = ()
    render: Optional[Mapping[str, Any]] = field(default=None, compare=False)

    @property
    def type(self) -> str:
        return self.__class__.TYPE

    @property
    def capabilities(self) -> tuple[str, ...]:
        caps = []
        if self.fragment is not None:
            caps.append("fragment")
        if self.generator is not None:
            caps.append("generator")
        return tuple(caps)

    @property
    def is_emittable(self) -> bool:
        return bool(self.capabilities)

    @property
    def primary_variable(self) -> Optional[str]:
        return self.required_variables[0] if self.required_variables else None

    def missing_variables(self, kinds: Iterable[str]) -> list[str]:
        """Required kinds not satisfied by `kinds` (exact name or same family)."""
        present = list(kinds)
        families = {naming.family(k) for k in present}
        return [
            req
            for req in self.required_variables
            if req not in present and naming.family(req) not in families
        ]

    def compatible_with(self, kinds: Iterable[str]) -> bool:
        return not self.missing_variables(kinds)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id='{self.id}', capabilities={self.capabilities})"


@dataclass(frozen=True, slots=True, repr=False)
class GlobalRule(Rule):
    TYPE = "global"


@dataclass(frozen=True, slots=True, repr=False)
class LocalRule(Rule):
    TYPE = "local"


RULE_TYPES: dict[str, type[Rule]] = {cls.TYPE: cls for cls in (GlobalRule, LocalRule)}
