from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Union

from zkexport.core.errors import ResolutionError
from zkexport.core.field import BN254_PRIME, modp

INSTANCE = "instance"
WITNESS = "witness"

# (coefficient, wire index)
SparseRow = Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class Variable:
    kind: str
    index: int

    def __add__(self, other):
        return LinearCombination.of(self) + other

    def __sub__(self, other):
        return LinearCombination.of(self) - other

    def __radd__(self, other):
        return LinearCombination.of(other) + self

    def __rsub__(self, other):
        return LinearCombination.of(other) - self

    def __mul__(self, k: int):
        return LinearCombination.of(self) * k

    __rmul__ = __mul__


ONE = Variable(INSTANCE, 0)

Value = Union[int, None, Callable[[], Optional[int]]]


@dataclass
class LinearCombination:
    """Ordered (coeff, Variable) terms. Arithmetic appends, it never merges or sorts."""
    terms: List[Tuple[int, Variable]] = field(default_factory=list)

    @classmethod
    def of(cls, v) -> "LinearCombination":
        if isinstance(v, LinearCombination):
            return cls(list(v.terms))
        if isinstance(v, Variable):
            return cls([(1, v)])
        if isinstance(v, int):
            return cls([(v, ONE)])
        raise TypeError(f"cannot build a linear combination from {type(v).__name__}")

    def __add__(self, other) -> "LinearCombination":
        return LinearCombination(self.terms + LinearCombination.of(other).terms)

    def __sub__(self, other) -> "LinearCombination":
        return self + LinearCombination.of(other) * -1

    def __radd__(self, other) -> "LinearCombination":
        return LinearCombination.of(other) + self

    def __rsub__(self, other) -> "LinearCombination":
        return LinearCombination.of(other) - self

    def __mul__(self, k: int) -> "LinearCombination":
        return LinearCombination([(c * k, v) for c, v in self.terms])

    __rmul__ = __mul__


@dataclass(frozen=True)
class FinalizedModel:
    prime: int
    a: Tuple[SparseRow, ...]
    b: Tuple[SparseRow, ...]
    c: Tuple[SparseRow, ...]
    instance_assignment: Tuple[int, ...]
    witness_assignment: Tuple[int, ...]

    @property
    def num_constraints(self) -> int:
        return len(self.a)

    @property
    def num_instance_variables(self) -> int:
        return len(self.instance_assignment)

    @property
    def num_witness_variables(self) -> int:
        return len(self.witness_assignment)


class ConstraintSystem:
    """
    Collects variables and rank-1 constraints for one circuit instance.

    Instance variables (the constant ONE first) and witness variables are numbered
    separately while the circuit is built; finalize() lays them out as wires
    [instance..., witness...].
    """

    def __init__(self, prime: int = BN254_PRIME):
        self.prime = prime
        self.instance_assignment: List[int] = [1]
        self.witness_assignment: List[int] = []
        self.constraints: List[Tuple[LinearCombination, LinearCombination, LinearCombination]] = []
        self._finalized: Optional[FinalizedModel] = None

    @property
    def is_finalized(self) -> bool:
        return self._finalized is not None

    def _check_open(self):
        if self._finalized is not None:
            raise RuntimeError("constraint system is already finalized")

    def _resolve(self, value: Value, what: str) -> int:
        if callable(value):
            value = value()
        if value is None:
            raise ResolutionError(f"missing assignment for {what}")
        return modp(int(value), self.prime)

    def new_input(self, value: Value) -> Variable:
        self._check_open()
        idx = len(self.instance_assignment)
        self.instance_assignment.append(self._resolve(value, f"public input #{idx}"))
        return Variable(INSTANCE, idx)

    def new_witness(self, value: Value) -> Variable:
        self._check_open()
        idx = len(self.witness_assignment)
        self.witness_assignment.append(self._resolve(value, f"private input #{idx}"))
        return Variable(WITNESS, idx)

    def enforce(self, a, b, c) -> None:
        """Add the constraint (a) * (b) = (c)."""
        self._check_open()
        self.constraints.append((LinearCombination.of(a), LinearCombination.of(b), LinearCombination.of(c)))

    def _wire(self, v: Variable) -> int:
        if v.kind == INSTANCE:
            if v.index >= len(self.instance_assignment):
                raise ResolutionError(f"unknown public variable {v.index}")
            return v.index
        if v.index >= len(self.witness_assignment):
            raise ResolutionError(f"unknown private variable {v.index}")
        return len(self.instance_assignment) + v.index

    def _row(self, lc: LinearCombination) -> SparseRow:
        row = []
        for coeff, v in lc.terms:
            k = modp(coeff, self.prime)
            if k:
                row.append((k, self._wire(v)))
        return tuple(row)

    def finalize(self) -> FinalizedModel:
        if self._finalized is None:
            self._finalized = FinalizedModel(
                prime=self.prime,
                a=tuple(self._row(a) for a, _, _ in self.constraints),
                b=tuple(self._row(b) for _, b, _ in self.constraints),
                c=tuple(self._row(c) for _, _, c in self.constraints),
                instance_assignment=tuple(self.instance_assignment),
                witness_assignment=tuple(self.witness_assignment),
            )
        return self._finalized
