"""Exception hierarchy of the lattice engine.

Every error is fatal to the current generation run. There is no local recovery:
a failed run has to be restarted from scratch with corrected input.
"""

from __future__ import annotations


class LatticeError(RuntimeError):
    """Base class of all lattice engine errors."""


# ----------------------------
# Data invariant violations
# ----------------------------

class ConsistencyError(LatticeError):
    """A data invariant of the lattice state has been violated."""


class RelationCollision(ConsistencyError):
    """An already defined relation would be overwritten by a different one."""


class RelationMergeConflict(RelationCollision):
    """A candidate relation row contradicts the stored row of an element."""


class InvalidSelfRelation(ConsistencyError):
    """The relation of an element to itself must stay undefined."""


class ConflictingGroupRelations(ConsistencyError):
    pass


class ConflictingAliasElements(ConsistencyError):
    pass


class MultipleModularAliases(ConsistencyError):
    pass


class PrimaryBoundDrift(ConsistencyError):
    """A defining combination no longer evaluates to its own element."""


class DuplicateModularElements(ConsistencyError):
    pass


class CombinationCacheConflict(ConsistencyError):
    """A combination is already cached with a different result element."""


class IncompleteRelations(ConsistencyError):
    """Closure or re-derivation added relations that should already be known."""


class ElementCountMismatch(ConsistencyError):
    """The generated element count differs from the declared target."""


# ----------------------------
# Safety limits
# ----------------------------

class SafetyLimitError(LatticeError):
    """A runaway-search guard has fired."""


class ModularRecursionOverflow(SafetyLimitError):
    pass


class IterationLimitExceeded(SafetyLimitError):
    pass


# ----------------------------
# Lookup / usage errors
# ----------------------------

class UnknownElement(LatticeError, LookupError):
    """Name is not registered."""


class UnknownLattice(UnknownElement):
    """No catalog entry with this name."""


class WorkerBusy(LatticeError):
    """A lattice generation is already running on this worker."""
