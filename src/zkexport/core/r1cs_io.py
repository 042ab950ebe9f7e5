from __future__ import annotations
import logging
import struct
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import List, Tuple, Dict, Any, Optional

import numpy as np
from scipy.sparse import csr_matrix

from zkexport.core.dims import Dimensions
from zkexport.core.errors import ConsistencyError, EncodingError, FormatError
from zkexport.core.field import FieldCodec
from zkexport.core.model import FinalizedModel, SparseRow

log = logging.getLogger(__name__)

R1CS_MAGIC = b"r1cs"
R1CS_VERSION = 1
HEADER_SECTION = 1
CONSTRAINT_SECTION = 2
WIRE2LABEL_SECTION = 3

INT_SIZE = 4
LONGLONG_SIZE = 8


def encode_uint(x: int, size: int = INT_SIZE) -> bytes:
    try:
        return int(x).to_bytes(size, "little", signed=False)
    except OverflowError:
        raise EncodingError(f"{x} does not fit an unsigned {8 * size}-bit field") from None


def section(section_type: int, payload: List[bytes]) -> List[bytes]:
    size = sum(map(len, payload))
    return [encode_uint(section_type), encode_uint(size, LONGLONG_SIZE)] + payload


@dataclass(frozen=True)
class R1CSHeader:
    n8: int
    prime: int
    n_wires: int
    n_pub_out: int
    n_pub_in: int
    n_prv_in: int
    n_labels: int
    n_constraints: int


@dataclass
class R1CSFile:
    header: R1CSHeader
    # per constraint: (A_row, B_row, C_row), each ((coeff, wire), ...)
    constraints: List[Tuple[SparseRow, SparseRow, SparseRow]]


def build_header(model: FinalizedModel, dims: Dimensions, codec: FieldCodec) -> R1CSHeader:
    codec.require_prime(model.prime)
    return R1CSHeader(
        n8=codec.n8,
        prime=codec.prime,
        n_wires=dims.n_wires,
        n_pub_out=0,  # public outputs are not tracked separately from inputs
        n_pub_in=dims.n_public,
        n_prv_in=dims.n_private,
        n_labels=dims.n_labels,
        n_constraints=dims.n_constraints,
    )


def _header_payload(h: R1CSHeader, codec: FieldCodec) -> List[bytes]:
    return [
        encode_uint(h.n8),
        codec.encode_prime(),
        encode_uint(h.n_wires),
        encode_uint(h.n_pub_out),
        encode_uint(h.n_pub_in),
        encode_uint(h.n_prv_in),
        encode_uint(h.n_labels, LONGLONG_SIZE),
        encode_uint(h.n_constraints),
    ]


def _row_payload(row: SparseRow, n_wires: int, codec: FieldCodec, out: List[bytes]):
    out.append(encode_uint(len(row)))
    for coeff, wire in row:
        if not 0 <= wire < n_wires:
            raise ConsistencyError(f"wire index {wire} outside 0..{n_wires - 1}")
        out.append(encode_uint(wire))
        out.append(codec.encode(coeff))


def encode_r1cs(model: FinalizedModel, dims: Dimensions, codec: FieldCodec) -> Tuple[R1CSHeader, bytes]:
    """
    Serialize the model as an iden3 r1cs v1 file:
      magic, version, nSections, header(1), constraints(2), wire->label map(3, empty).
    Rows keep the model's term order.
    """
    if model.num_constraints != dims.n_constraints:
        raise ConsistencyError(
            f"model has {model.num_constraints} constraints, dimensions say {dims.n_constraints}"
        )
    header = build_header(model, dims, codec)

    cons: List[bytes] = []
    for i in range(dims.n_constraints):
        for row in (model.a[i], model.b[i], model.c[i]):
            _row_payload(row, dims.n_wires, codec, cons)

    stream = [R1CS_MAGIC, encode_uint(R1CS_VERSION), encode_uint(3)]
    stream += section(HEADER_SECTION, _header_payload(header, codec))
    stream += section(CONSTRAINT_SECTION, cons)
    stream += section(WIRE2LABEL_SECTION, [])
    data = b"".join(stream)
    log.debug("encoded r1cs: %d constraints, %d bytes", dims.n_constraints, len(data))
    return header, data


def write_bytes(path: str | Path, data: bytes) -> None:
    """Write data to path; on failure the partial file is removed and the error re-raised."""
    path = Path(path)
    f = path.open("wb")
    try:
        with f:
            f.write(data)
    except BaseException:
        path.unlink(missing_ok=True)
        raise


def write_r1cs(model: FinalizedModel, dims: Dimensions, path: str | Path,
               codec: Optional[FieldCodec] = None) -> R1CSHeader:
    codec = codec or FieldCodec(prime=model.prime)
    header, data = encode_r1cs(model, dims, codec)
    write_bytes(path, data)
    return header


# ---- read-back, used for smoke tests and the CLI ----

class Cursor:
    def __init__(self, raw: bytes, what: str):
        self.raw = raw
        self.pos = 0
        self.what = what

    def take(self, n: int) -> bytes:
        if self.pos + n > len(self.raw):
            raise FormatError(f"{self.what}: truncated at byte {self.pos} (wanted {n} more)")
        out = self.raw[self.pos:self.pos + n]
        self.pos += n
        return out

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.take(8))[0]

    @property
    def done(self) -> bool:
        return self.pos >= len(self.raw)


def read_sections(raw: bytes, magic: bytes, versions: Tuple[int, ...], what: str) -> Dict[int, bytes]:
    """Split an iden3 binary container into {section_type: payload}."""
    cur = Cursor(raw, what)
    if cur.take(4) != magic:
        raise FormatError(f"{what}: bad magic, expected {magic!r}")
    version = cur.u32()
    if version not in versions:
        raise FormatError(f"{what}: unsupported version {version}")
    n_sections = cur.u32()
    sections: Dict[int, bytes] = {}
    for _ in range(n_sections):
        s_type = cur.u32()
        s_size = cur.u64()
        if s_type in sections:
            raise FormatError(f"{what}: duplicate section {s_type}")
        sections[s_type] = cur.take(s_size)
    return sections


def _parse_header(payload: bytes, expected_prime: Optional[int]) -> R1CSHeader:
    cur = Cursor(payload, "r1cs header")
    n8 = cur.u32()
    prime = int.from_bytes(cur.take(n8), "little")
    if expected_prime is not None and prime != expected_prime:
        raise FormatError(f"r1cs prime mismatch: file has {prime}, expected {expected_prime}")
    return R1CSHeader(
        n8=n8, prime=prime,
        n_wires=cur.u32(), n_pub_out=cur.u32(), n_pub_in=cur.u32(),
        n_prv_in=cur.u32(), n_labels=cur.u64(), n_constraints=cur.u32(),
    )


def _parse_constraints(payload: bytes, h: R1CSHeader):
    cur = Cursor(payload, "r1cs constraints")

    def row():
        out = []
        for _ in range(cur.u32()):
            wire = cur.u32()
            coeff = int.from_bytes(cur.take(h.n8), "little")
            if wire >= h.n_wires:
                raise FormatError(f"r1cs constraints: wire {wire} outside 0..{h.n_wires - 1}")
            out.append((coeff, wire))
        return tuple(out)

    constraints = [(row(), row(), row()) for _ in range(h.n_constraints)]
    if not cur.done:
        raise FormatError("r1cs constraints: trailing bytes after last constraint")
    return constraints


def read_r1cs(path: str | Path, expected_prime: Optional[int] = None) -> R1CSFile:
    sections = read_sections(Path(path).read_bytes(), R1CS_MAGIC, (R1CS_VERSION,), "r1cs")
    for s in (HEADER_SECTION, CONSTRAINT_SECTION):
        if s not in sections:
            raise FormatError(f"r1cs: missing section {s}")
    header = _parse_header(sections[HEADER_SECTION], expected_prime)
    return R1CSFile(header=header, constraints=_parse_constraints(sections[CONSTRAINT_SECTION], header))


def read_r1cs_header(path: str | Path, expected_prime: Optional[int] = None) -> R1CSHeader:
    return read_r1cs(path, expected_prime).header


def _pattern(r: R1CSFile, which: int) -> csr_matrix:
    rows, cols = [], []
    for i, trip in enumerate(r.constraints):
        for _, wire in trip[which]:
            rows.append(i); cols.append(wire)
    M = csr_matrix((np.ones(len(rows), dtype=np.int8), (np.array(rows, dtype=int), np.array(cols, dtype=int))),
                   shape=(r.header.n_constraints, r.header.n_wires))
    M.data[:] = 1
    return M


def summarize_r1cs(r: R1CSFile) -> Dict[str, Any]:
    h = r.header
    A, B = _pattern(r, 0), _pattern(r, 1)
    mult_rows = int(((A.getnnz(axis=1) > 0) & (B.getnnz(axis=1) > 0)).sum()) if h.n_constraints else 0
    out = asdict(h)
    out["prime_bits"] = int(h.prime.bit_length())
    out["multiplicative_rows"] = mult_rows
    out["linear_rows"] = int(h.n_constraints - mult_rows)
    return out
