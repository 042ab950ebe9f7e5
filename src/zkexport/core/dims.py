from __future__ import annotations
from dataclasses import dataclass

from zkexport.core.errors import EncodingError
from zkexport.core.model import FinalizedModel

U32_MAX = 2**32 - 1


@dataclass(frozen=True)
class Dimensions:
    """Counts shared by the r1cs and wtns encoders. The constant wire is counted in n_public."""
    n_constraints: int
    n_public: int
    n_private: int

    @property
    def n_wires(self) -> int:
        return self.n_public + self.n_private

    @property
    def n_labels(self) -> int:
        # no custom labelling: one label per wire
        return self.n_wires


def _check_range(name: str, value: int, limit: int):
    if value > limit:
        raise EncodingError(f"{name}={value} does not fit the header field (max {limit})")


def resolve_dimensions(model: FinalizedModel) -> Dimensions:
    dims = Dimensions(
        n_constraints=model.num_constraints,
        n_public=model.num_instance_variables,
        n_private=model.num_witness_variables,
    )
    _check_range("n_constraints", dims.n_constraints, U32_MAX)
    _check_range("n_pub_in", dims.n_public, U32_MAX)
    _check_range("n_prv_in", dims.n_private, U32_MAX)
    _check_range("n_wires", dims.n_wires, U32_MAX)
    return dims
