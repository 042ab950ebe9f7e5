import json
import logging
import click
from pathlib import Path

from zkexport.circuits.simple import SimpleCircuit
from zkexport.core.check import first_unsatisfied
from zkexport.core.errors import ExportError
from zkexport.core.field import BN254_PRIME, FIELD_SIZE, FieldCodec
from zkexport.core.r1cs_io import read_r1cs, summarize_r1cs
from zkexport.core.witness_io import read_wtns, witness_to_json
from zkexport.export import export_to_circom_files


@click.group()
@click.option("-v", "--verbose", count=True, help="-v for INFO, -vv for DEBUG logging")
def cli(verbose):
    """zkexport command line interface"""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@cli.command(name="demo")
@click.option("--a", "a", default=3, show_default=True, help="Private input a")
@click.option("--b", "b", default=5, show_default=True, help="Private input b")
@click.option("--out-dir", type=click.Path(file_okay=False), default="outputs", show_default=True)
@click.option("--prime", type=int, default=BN254_PRIME, help="Field modulus (default BN254 scalar field)")
@click.option("--field-size", type=int, default=FIELD_SIZE, show_default=True, help="Bytes per field element")
def demo_cmd(a, b, out_dir, prime, field_size):
    """Export the a*b=c, a+b=d demo circuit and read the r1cs back."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    r1cs_path, wtns_path = out / "circuit.r1cs", out / "witness.wtns"
    codec = FieldCodec(prime=prime, n8=field_size)

    click.echo(f"Creating circuit with a={a}, b={b} (private), c={a * b}, d={a + b} (public)")
    try:
        res = export_to_circom_files(SimpleCircuit.from_inputs(a, b), r1cs_path, wtns_path, codec=codec)
        r = read_r1cs(r1cs_path, expected_prime=prime)
    except (ExportError, OSError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Written R1CS to: {res.r1cs_path}")
    click.echo(f"Written witness to: {res.wtns_path}")
    click.echo(json.dumps(summarize_r1cs(r), indent=2))


@cli.command(name="inspect")
@click.option("--r1cs", type=click.Path(exists=True, dir_okay=False), required=True,
              help="Path to a binary .r1cs file")
@click.option("--prime", type=int, default=None, help="Reject files whose prime differs")
def inspect_cmd(r1cs, prime):
    """Summarize an r1cs file header."""
    try:
        r = read_r1cs(r1cs, expected_prime=prime)
    except ExportError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(summarize_r1cs(r), indent=2))


@cli.command(name="witness")
@click.option("--wtns", type=click.Path(exists=True, dir_okay=False), required=True)
@click.option("--out", "out_path", type=click.Path(dir_okay=False), required=False,
              help="Write the JSON here instead of stdout")
def witness_cmd(wtns, out_path):
    """Dump a .wtns file as a snarkjs-style JSON array."""
    try:
        w = read_wtns(wtns)
    except ExportError as e:
        raise click.ClickException(str(e))
    s = witness_to_json(w.values)
    if out_path:
        Path(out_path).write_text(s)
    else:
        click.echo(s)


@cli.command(name="check")
@click.option("--r1cs", type=click.Path(exists=True, dir_okay=False), required=True)
@click.option("--wtns", type=click.Path(exists=True, dir_okay=False), required=True)
def check_cmd(r1cs, wtns):
    """Verify that a witness file satisfies an r1cs file."""
    try:
        r = read_r1cs(r1cs)
        w = read_wtns(wtns, expected_prime=r.header.prime)
    except ExportError as e:
        raise click.ClickException(str(e))
    if len(w.values) != r.header.n_wires:
        raise click.ClickException(
            f"witness has {len(w.values)} values, r1cs declares {r.header.n_wires} wires"
        )
    A = [t[0] for t in r.constraints]
    B = [t[1] for t in r.constraints]
    C = [t[2] for t in r.constraints]
    bad = first_unsatisfied(A, B, C, w.values, r.header.prime)
    if bad is not None:
        raise click.ClickException(f"Witness does not satisfy R1CS (first failing row {bad})")
    click.echo(f"OK: {r.header.n_constraints} constraints satisfied by {len(w.values)} wires")


def main():
    cli()

if __name__ == "__main__":
    main()
