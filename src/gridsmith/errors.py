"""Custom exception hierarchy for puzzle compilation."""


class GridsmithError(Exception):
    """Base exception for catalog loading and compilation failures."""


class ConfigurationError(GridsmithError):
    """Raised when the puzzle or the rule catalog is inconsistent.

    Unknown rule ids, missing variable kinds, out-of-bounds cells and malformed
    rule bundles all end up here.
    """


class NotFound(ConfigurationError, KeyError):
    """Raised when a rule id is not present in the registry."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead
        return str(self.args[0]) if self.args else ""


class UnemittableRule(GridsmithError):
    """Raised when a selected rule has neither a fragment nor a generator."""


class GeneratorFailure(GridsmithError):
    """Raised when a procedural generator fails while compiling.

    Attributes:
        rule_id: The id of the rule whose generator raised
        instance: 1-based position of the constraint instance, None for global rules
    """

    def __init__(self, rule_id: str, instance: int | None, reason: str):
        self.rule_id = rule_id
        self.instance = instance
        where = f"instance {instance}" if instance is not None else "global selection"
        super().__init__(f"Generator of rule '{rule_id}' ({where}) failed: {reason}")


class AssemblyInvariantViolation(GridsmithError):
    """Raised when emitted text breaks the shared naming convention."""


class CompileWarning(UserWarning):
    """Emitted for degraded but valid compilations (e.g. a grid without regions)."""
