import pytest

from zkexport.circuits.simple import SimpleCircuit
from zkexport.core.model import ConstraintSystem


@pytest.fixture
def simple_model():
    cs = ConstraintSystem()
    SimpleCircuit.from_inputs(3, 5).generate_constraints(cs)
    return cs.finalize()
