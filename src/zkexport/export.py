from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from zkexport.core.check import first_unsatisfied
from zkexport.core.dims import Dimensions, resolve_dimensions
from zkexport.core.errors import ResolutionError
from zkexport.core.field import BN254_PRIME, FieldCodec
from zkexport.core.model import ConstraintSystem, FinalizedModel
from zkexport.core.r1cs_io import R1CSHeader, write_r1cs
from zkexport.core.witness_io import write_wtns

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    dims: Dimensions
    header: R1CSHeader
    n_witness: int
    r1cs_path: Path
    wtns_path: Path


def export_model(model: FinalizedModel, r1cs_path: str | Path, wtns_path: str | Path,
                 codec: Optional[FieldCodec] = None, check: bool = True) -> ExportResult:
    """
    Write a finalized model as a circom-compatible .r1cs / .wtns pair.

    Dimensions are resolved once and handed to both encoders. Any failure aborts
    the run and removes whatever this run already wrote.
    """
    codec = codec or FieldCodec(prime=model.prime)
    r1cs_path, wtns_path = Path(r1cs_path), Path(wtns_path)

    if check:
        z = list(model.instance_assignment) + list(model.witness_assignment)
        bad = first_unsatisfied(model.a, model.b, model.c, z, model.prime)
        if bad is not None:
            raise ResolutionError(f"assignment does not satisfy constraint {bad}")

    dims = resolve_dimensions(model)
    log.info("circuit stats: constraints=%d public=%d private=%d wires=%d",
             dims.n_constraints, dims.n_public, dims.n_private, dims.n_wires)

    written = []
    try:
        header = write_r1cs(model, dims, r1cs_path, codec)
        written.append(r1cs_path)
        log.info("written r1cs to %s", r1cs_path)
        n_witness = write_wtns(model, dims, wtns_path, codec)
        written.append(wtns_path)
        log.info("written witness to %s", wtns_path)
    except BaseException:
        for p in written:
            p.unlink(missing_ok=True)
        raise

    return ExportResult(dims=dims, header=header, n_witness=n_witness,
                        r1cs_path=r1cs_path, wtns_path=wtns_path)


def export_to_circom_files(circuit, r1cs_path: str | Path, wtns_path: str | Path,
                           codec: Optional[FieldCodec] = None, check: bool = True) -> ExportResult:
    """Synthesize `circuit` (anything with generate_constraints(cs)) and export it."""
    cs = ConstraintSystem(prime=codec.prime if codec else BN254_PRIME)
    circuit.generate_constraints(cs)
    return export_model(cs.finalize(), r1cs_path, wtns_path, codec=codec, check=check)
