from __future__ import annotations

import logging
import warnings
from typing import Iterable, Mapping, Optional

from gridsmith import naming
from gridsmith.errors import CompileWarning, GeneratorFailure
from gridsmith.rules.base import Rule
from gridsmith.state import Clue, ConstraintInstance, Grid, Group, VariableKind

logger = logging.getLogger(__name__)


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def emit_clues(clues: Iterable[Clue], variables: Mapping[str, VariableKind]) -> str:
    lines = [naming.comment("clues")]
    for clue in clues:
        kind = variables[clue.variable]
        ref = naming.cell_ref(kind.name, clue.row, clue.col)
        lines.append(f"constraint {ref} = {_format_value(clue.value)};")
    return "\n".join(lines)


def _skip_reason(rule: Rule, grid: Grid) -> Optional[str]:
    if rule.requires_regions and grid.regions is None:
        return f"{rule.id} skipped: no regions defined"
    return None


def _skip(rule: Rule, reason: str) -> str:
    warnings.warn(
        f"Rule '{rule.id}' needs regions but the grid has none; emitting a no-op",
        CompileWarning,
        stacklevel=5,
    )
    return naming.neutral(reason)


def _run_generator(
    rule: Rule,
    groups: tuple[Group, ...],
    instances: tuple[ConstraintInstance, ...],
    grid: Grid,
    position: Optional[int],
) -> str:
    try:
        text = rule.generator(groups, instances, grid)
    except Exception as e:
        raise GeneratorFailure(rule.id, position, f"{type(e).__name__}: {e}") from e
    if not isinstance(text, str):
        raise GeneratorFailure(
            rule.id, position, f"returned {type(text).__name__} instead of text"
        )
    text = text.strip()
    return text or naming.neutral("generator produced no constraints")


def _group_line(rule: Rule, index: int, group: Group) -> str:
    kind = rule.primary_variable
    if kind is None:
        cells = ", ".join(f"({r + 1}, {c + 1})" for r, c in group.cells)
    else:
        cells = ", ".join(naming.cell_ref(kind, r, c) for r, c in group.cells)
    suffix = f" (value={group.value})" if group.value is not None else ""
    return naming.comment(f"group {index}: {cells or '(empty)'}{suffix}")


def emit_global_rule(
    rule: Rule, instances: tuple[ConstraintInstance, ...], grid: Grid
) -> str:
    """Provenance comment, then the fragment verbatim, then the generator output."""
    parts = [naming.comment(f"global rule: {rule.id}")]
    reason = _skip_reason(rule, grid)
    if reason is not None:
        parts.append(_skip(rule, reason))
        return "\n".join(parts)
    if rule.fragment is not None:
        parts.append(rule.fragment.strip())
    if rule.generator is not None:
        # globals have no placement
        parts.append(_run_generator(rule, (), instances, grid, None))
    return "\n".join(parts)


def emit_shared_fragment(rule: Rule) -> str:
    """Boilerplate of a local rule, emitted once before its first instance."""
    return "\n".join(
        [naming.comment(f"local rule: {rule.id} (shared definitions)"), rule.fragment.strip()]
    )


def emit_instance(
    rule: Rule,
    instance: ConstraintInstance,
    position: int,
    instances: tuple[ConstraintInstance, ...],
    grid: Grid,
) -> str:
    """Provenance comment, the groups in emitted addressing, then the generator output.

    `position` is the 1-based index of `instance` in the puzzle.
    """
    parts = [naming.comment(f"local rule: {rule.id} (instance {position})")]
    parts.extend(
        _group_line(rule, idx, group) for idx, group in enumerate(instance.groups, start=1)
    )
    reason = _skip_reason(rule, grid)
    if reason is not None:
        parts.append(_skip(rule, reason))
    elif rule.generator is not None:
        parts.append(
            _run_generator(rule, instance.groups, instances, grid, position)
        )
    return "\n".join(parts)


def apply_rules(
    *,
    grid: Grid,
    global_rules: Iterable[Rule],
    instances: tuple[ConstraintInstance, ...],
    rules_by_id: Mapping[str, Rule],
) -> list[str]:
    """Emit global rules in selection order, then instances in insertion order.

    Every generator receives the same `instances` tuple, the complete and
    immutable list of constraint instances of the puzzle.
    """
    blocks: list[str] = []
    for rule in global_rules:
        logger.debug("Emitting global rule %s", rule.id)
        blocks.append(emit_global_rule(rule, instances, grid))

    introduced: set[str] = set()
    for position, instance in enumerate(instances, start=1):
        rule = rules_by_id[instance.rule_id]
        if rule.id not in introduced:
            introduced.add(rule.id)
            if rule.fragment is not None and _skip_reason(rule, grid) is None:
                blocks.append(emit_shared_fragment(rule))
        logger.debug("Emitting %s instance %d", rule.id, position)
        blocks.append(emit_instance(rule, instance, position, instances, grid))
    return blocks
