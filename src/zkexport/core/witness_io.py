from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from zkexport.core.dims import Dimensions
from zkexport.core.errors import ConsistencyError, FormatError
from zkexport.core.field import FieldCodec
from zkexport.core.model import FinalizedModel
from zkexport.core.r1cs_io import Cursor, encode_uint, read_sections, section, write_bytes

log = logging.getLogger(__name__)

WTNS_MAGIC = b"wtns"
WTNS_VERSION = 2
WTNS_HEADER_SECTION = 1
WTNS_DATA_SECTION = 2


@dataclass
class WitnessFile:
    n8: int
    prime: int
    values: List[int]


def build_witness_vector(model: FinalizedModel, dims: Dimensions) -> List[int]:
    """
    Witness in wire order: [1, public..., private...].
    Position i holds the value of wire i as used in the r1cs term lists.
    """
    public = list(model.instance_assignment)
    private = list(model.witness_assignment)
    if not public or public[0] != 1:
        raise ConsistencyError("first public value must be the constant 1")
    if len(public) != dims.n_public or len(private) != dims.n_private:
        raise ConsistencyError(
            f"assignment sizes ({len(public)} public, {len(private)} private) "
            f"do not match dimensions ({dims.n_public}, {dims.n_private})"
        )
    z = public + private
    if len(z) != dims.n_wires:
        raise ConsistencyError(f"witness has {len(z)} values, expected {dims.n_wires} wires")
    return z


def encode_wtns(model: FinalizedModel, dims: Dimensions, codec: FieldCodec) -> bytes:
    """iden3 wtns v2: magic, version, nSections, header(1: n8, prime, nWitness), values(2)."""
    codec.require_prime(model.prime)
    z = build_witness_vector(model, dims)
    header = [encode_uint(codec.n8), codec.encode_prime(), encode_uint(len(z))]
    values = [codec.encode(v) for v in z]
    stream = [WTNS_MAGIC, encode_uint(WTNS_VERSION), encode_uint(2)]
    stream += section(WTNS_HEADER_SECTION, header)
    stream += section(WTNS_DATA_SECTION, values)
    data = b"".join(stream)
    log.debug("encoded wtns: %d values, %d bytes", len(z), len(data))
    return data


def write_wtns(model: FinalizedModel, dims: Dimensions, path: str | Path,
               codec: Optional[FieldCodec] = None) -> int:
    codec = codec or FieldCodec(prime=model.prime)
    write_bytes(path, encode_wtns(model, dims, codec))
    return dims.n_wires


def read_wtns(path: str | Path, expected_prime: Optional[int] = None) -> WitnessFile:
    sections = read_sections(Path(path).read_bytes(), WTNS_MAGIC, (WTNS_VERSION,), "wtns")
    for s in (WTNS_HEADER_SECTION, WTNS_DATA_SECTION):
        if s not in sections:
            raise FormatError(f"wtns: missing section {s}")
    cur = Cursor(sections[WTNS_HEADER_SECTION], "wtns header")
    n8 = cur.u32()
    codec = FieldCodec(prime=int.from_bytes(cur.take(n8), "little"), n8=n8)
    if expected_prime is not None and codec.prime != expected_prime:
        raise FormatError(f"wtns prime mismatch: file has {codec.prime}, expected {expected_prime}")
    n_witness = cur.u32()

    data = sections[WTNS_DATA_SECTION]
    if len(data) != n_witness * n8:
        raise FormatError(f"wtns: data section has {len(data)} bytes, expected {n_witness * n8}")
    values = [codec.decode(data[i * n8:(i + 1) * n8]) for i in range(n_witness)]
    return WitnessFile(n8=n8, prime=codec.prime, values=values)


def witness_to_json(values: List[int]) -> str:
    """snarkjs `wtns export json` layout: a flat array of decimal strings."""
    return json.dumps([str(v) for v in values], indent=1)
