import struct

import pytest

from zkexport.core.dims import Dimensions, resolve_dimensions
from zkexport.core.errors import ConsistencyError, FormatError
from zkexport.core.field import BN254_PRIME, FieldCodec
from zkexport.core.model import FinalizedModel
from zkexport.core.witness_io import build_witness_vector, encode_wtns, read_wtns, witness_to_json, write_wtns


def test_witness_vector_order(simple_model):
    assert build_witness_vector(simple_model, resolve_dimensions(simple_model)) == [1, 15, 8, 3, 5]


def test_length_mismatch_is_fatal(simple_model):
    with pytest.raises(ConsistencyError):
        build_witness_vector(simple_model, Dimensions(n_constraints=2, n_public=3, n_private=3))


def test_constant_wire_must_be_one():
    m = FinalizedModel(prime=BN254_PRIME, a=(), b=(), c=(),
                       instance_assignment=(2,), witness_assignment=())
    with pytest.raises(ConsistencyError):
        build_witness_vector(m, resolve_dimensions(m))


def test_wtns_layout(simple_model):
    data = encode_wtns(simple_model, resolve_dimensions(simple_model), FieldCodec())
    assert data[:4] == b"wtns"
    assert struct.unpack("<III", data[4:16]) == (2, 2, 1)
    assert struct.unpack("<Q", data[16:24])[0] == 4 + 32 + 4
    assert len(data) == 12 + (12 + 40) + (12 + 5 * 32)


def test_read_back(simple_model, tmp_path):
    p = tmp_path / "w.wtns"
    n = write_wtns(simple_model, resolve_dimensions(simple_model), p)
    w = read_wtns(p, expected_prime=BN254_PRIME)
    assert n == 5
    assert w.n8 == 32
    assert w.values == [1, 15, 8, 3, 5]
    assert w.values[0] == 1


def test_read_rejects_foreign_prime(simple_model, tmp_path):
    p = tmp_path / "w.wtns"
    write_wtns(simple_model, resolve_dimensions(simple_model), p)
    with pytest.raises(FormatError):
        read_wtns(p, expected_prime=97)


def test_witness_to_json():
    assert witness_to_json([1, 15]) == '[\n "1",\n "15"\n]'


def test_prime_mismatch_between_model_and_codec(simple_model, tmp_path):
    dims = resolve_dimensions(simple_model)
    with pytest.raises(ConsistencyError):
        encode_wtns(simple_model, dims, FieldCodec(prime=97))
    with pytest.raises(ConsistencyError):
        write_wtns(simple_model, dims, tmp_path / "w.wtns", FieldCodec(prime=97))
    assert not (tmp_path / "w.wtns").exists()


def _wtns(sections, magic=b"wtns", version=2):
    out = magic + struct.pack("<II", version, len(sections))
    for s_type, payload in sections:
        out += struct.pack("<IQ", s_type, len(payload)) + payload
    return out


def _wtns_header(n_witness):
    return struct.pack("<I", 32) + BN254_PRIME.to_bytes(32, "little") + struct.pack("<I", n_witness)


def test_read_rejects_malformed_files(simple_model, tmp_path):
    p = tmp_path / "bad.wtns"
    good = encode_wtns(simple_model, resolve_dimensions(simple_model), FieldCodec())

    p.write_bytes(b"r1cs" + good[4:])
    with pytest.raises(FormatError, match="bad magic"):
        read_wtns(p)

    p.write_bytes(good[:4] + struct.pack("<I", 1) + good[8:])
    with pytest.raises(FormatError, match="unsupported version"):
        read_wtns(p)

    p.write_bytes(good[:-7])
    with pytest.raises(FormatError, match="truncated"):
        read_wtns(p)


def test_read_rejects_missing_section(tmp_path):
    p = tmp_path / "h.wtns"
    p.write_bytes(_wtns([(1, _wtns_header(1))]))
    with pytest.raises(FormatError, match="missing section 2"):
        read_wtns(p)


def test_read_rejects_wrong_data_size(tmp_path):
    p = tmp_path / "s.wtns"
    values = (1).to_bytes(32, "little") + (2).to_bytes(32, "little")
    p.write_bytes(_wtns([(1, _wtns_header(3)), (2, values)]))
    with pytest.raises(FormatError, match="data section"):
        read_wtns(p)

    p.write_bytes(_wtns([(1, _wtns_header(2)), (2, values)]))
    assert read_wtns(p).values == [1, 2]
