from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from zkexport.core.model import ONE, ConstraintSystem


@dataclass
class SimpleCircuit:
    """
    Knowledge of private a, b with public outputs
      c = a * b
      d = a + b
    Missing values fail at allocation time.
    """
    a: Optional[int] = None
    b: Optional[int] = None
    c: Optional[int] = None
    d: Optional[int] = None

    @classmethod
    def from_inputs(cls, a: int, b: int) -> "SimpleCircuit":
        return cls(a=a, b=b, c=a * b, d=a + b)

    def generate_constraints(self, cs: ConstraintSystem) -> None:
        a = cs.new_witness(lambda: self.a)
        b = cs.new_witness(lambda: self.b)
        c = cs.new_input(lambda: self.c)
        d = cs.new_input(lambda: self.d)

        cs.enforce(a, b, c)
        cs.enforce(a + b, ONE, d)
