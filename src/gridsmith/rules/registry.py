"""Rule registry.

Each rule is a bundle directory ``catalog/<global|local>/<rule-id>/`` holding:

- ``metadata.yaml`` (required): id, name, type, requiredVariables, categories and
  the explicitly declared ``capabilities`` (subset of fragment/generator);
- ``constraint.mzn`` (optional): the constraint fragment;
- a procedural generator registered in ``GENERATORS`` under the rule id.

Declared capabilities are checked against the artifacts actually present, in
both directions. Bundles whose directory name starts with ``_`` are scaffolds
for rule authors and are never loaded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from yaml import YAMLError, safe_load

from gridsmith.errors import ConfigurationError, NotFound
from gridsmith.rules import library as rules_lib
from gridsmith.rules.base import RULE_TYPES, Generator, Rule

logger = logging.getLogger(__name__)

CATALOG_DIR = Path(__file__).resolve().parent / "catalog"
TEMPLATE_MARKER = "_"
METADATA_FILE = "metadata.yaml"
FRAGMENT_FILE = "constraint.mzn"
CAPABILITIES = ("fragment", "generator")

BUILDERS = [
    # ---------- Global rules ----------
    rules_lib.global_region_sum_lines,
    # ---------- Local rules ----------
    rules_lib.killer_cage,
    rules_lib.arrow,
    rules_lib.thermometer,
    rules_lib.german_whisper,
    rules_lib.white_dot,
    rules_lib.black_dot,
    rules_lib.region_sum_line,
]

assert len({fn.__name__ for fn in BUILDERS}) == len(
    BUILDERS
), "Duplicate generator name in BUILDERS"

# Map stable rule IDs -> generator function from the BUILDERS list
GENERATORS: Dict[str, Generator] = {
    fn.__name__.replace("_", "-"): fn for fn in BUILDERS
}


def _read_metadata(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as stream:
            parsed = safe_load(stream)
    except YAMLError as e:
        raise ConfigurationError(f"{path}: invalid YAML ({e})") from e
    if not isinstance(parsed, dict):
        raise ConfigurationError(f"{path}: metadata must be a mapping")
    return parsed


def _str_list(meta: Mapping[str, Any], key: str, where: Path) -> tuple[str, ...]:
    raw = meta.get(key) or []
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        raise ConfigurationError(f"{where}: '{key}' must be a list of strings")
    return tuple(raw)


def build_rule(
    bundle: Path, rule_type: str, generators: Mapping[str, Generator]
) -> Rule:
    """Assemble one Rule from its bundle directory."""
    meta_path = bundle / METADATA_FILE
    if not meta_path.is_file():
        raise ConfigurationError(f"Rule bundle {bundle} has no {METADATA_FILE}")
    meta = _read_metadata(meta_path)

    rule_id = meta.get("id")
    if rule_id != bundle.name:
        raise ConfigurationError(
            f"{meta_path}: id {rule_id!r} must match the bundle name '{bundle.name}'"
        )
    if meta.get("type") != rule_type:
        raise ConfigurationError(
            f"{meta_path}: type {meta.get('type')!r} does not match '{rule_type}' catalog"
        )
    name = meta.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(f"{meta_path}: 'name' must be a non-empty string")

    declared = set(_str_list(meta, "capabilities", meta_path))
    unknown = declared - set(CAPABILITIES)
    if unknown:
        raise ConfigurationError(
            f"{meta_path}: unknown capabilities {sorted(unknown)}; known: {list(CAPABILITIES)}"
        )

    fragment_path = bundle / FRAGMENT_FILE
    present = set()
    if fragment_path.is_file():
        present.add("fragment")
    if rule_id in generators:
        present.add("generator")
    if declared != present:
        raise ConfigurationError(
            f"Rule '{rule_id}' declares capabilities {sorted(declared)} "
            f"but provides {sorted(present)}"
        )

    render = meta.get("render")
    if render is not None and not isinstance(render, dict):
        raise ConfigurationError(f"{meta_path}: 'render' must be a mapping")

    return RULE_TYPES[rule_type](
        id=rule_id,
        name=name,
        description=str(meta.get("description") or ""),
        required_variables=_str_list(meta, "requiredVariables", meta_path),
        categories=_str_list(meta, "categories", meta_path),
        fragment=(
            fragment_path.read_text(encoding="utf-8") if "fragment" in present else None
        ),
        generator=generators.get(rule_id),
        requires_regions=bool(meta.get("requiresRegions", False)),
        consumes=_str_list(meta, "consumes", meta_path),
        render=render,
    )


class RuleRegistry:
    """Read-only catalog of loaded rules, keyed by id.

    Queries never mutate the loaded set. `register` exists for programmatic
    catalogs (and tests); the compiler only reads.
    """

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: Dict[str, Rule] = {}
        for rule in rules:
            self.register(rule)

    @classmethod
    def load(
        cls,
        root: str | Path | None = None,
        generators: Optional[Mapping[str, Generator]] = None,
    ) -> RuleRegistry:
        """Load every non-scaffold bundle below `root` (the bundled catalog by default)."""
        root = Path(root) if root is not None else CATALOG_DIR
        generators = GENERATORS if generators is None else generators
        if not root.is_dir():
            raise ConfigurationError(f"Rule catalog not found: {root}")

        registry = cls()
        for rule_type in RULE_TYPES:
            type_dir = root / rule_type
            if not type_dir.is_dir():
                continue
            for bundle in sorted(type_dir.iterdir()):
                if not bundle.is_dir() or bundle.name.startswith(TEMPLATE_MARKER):
                    continue
                registry.register(build_rule(bundle, rule_type, generators))
        registry.validate_dependencies()
        logger.debug("Loaded %d rules from %s", len(registry), root)
        return registry

    def register(self, rule: Rule) -> Rule:
        if rule.id in self._rules:
            raise ConfigurationError(f"Duplicate rule id '{rule.id}'")
        self._rules[rule.id] = rule
        return rule

    def validate_dependencies(self) -> None:
        """Every `consumes` entry must name a loaded local rule."""
        for rule in self._rules.values():
            for dep in rule.consumes:
                target = self._rules.get(dep)
                if target is None or target.type != "local":
                    raise ConfigurationError(
                        f"Rule '{rule.id}' consumes '{dep}', which is not a known local rule"
                    )

    # ---------- Queries ----------

    def get(self, rule_id: str) -> Rule:
        try:
            return self._rules[rule_id]
        except KeyError as e:
            known = ", ".join(sorted(self._rules))
            raise NotFound(f"Unknown rule id '{rule_id}'. Known: {known}") from e

    @property
    def rules(self) -> tuple[Rule, ...]:
        return tuple(self._rules[rid] for rid in sorted(self._rules))

    def by_type(self, rule_type: str) -> list[Rule]:
        return [r for r in self.rules if r.type == rule_type]

    def by_category(self, category: str) -> list[Rule]:
        return [r for r in self.rules if category in r.categories]

    def compatible(self, kinds: Iterable[str]) -> list[Rule]:
        present = list(kinds)
        return [r for r in self.rules if r.compatible_with(present)]

    def categories(self) -> list[str]:
        return sorted({c for r in self._rules.values() for c in r.categories})

    def list_rule_ids(self) -> list[str]:
        """Return the stable IDs for all registered rules."""
        return sorted(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self._rules)
