import json
from pathlib import Path
import click
from egon_core.protocol import SECTOR_SIZE
from .logic import validate_and_report, verify_image

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}

@click.group()
def main():
    pass

@main.command("image")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--offset", type=int, default=0, show_default=True, help="Byte offset of the image inside PATH")
@click.option("--quiet", is_flag=True, help="Only locate the image, skip checksum and DRAM inspection")
@click.option("--dump-headers", is_flag=True, help="Also dump the decoded header structs")
@click.option("--json", "as_json", is_flag=True, help="Print the result as canonical JSON")
def image_cmd(path: Path, offset: int, quiet: bool, dump_headers: bool, as_json: bool):
    try:
        with open(path, "rb") as f:
            f.seek(offset)
            sector = f.read(SECTOR_SIZE)
            if len(sector) != SECTOR_SIZE:
                raise ValueError(f"{path}: no full sector at offset {offset}")

            if as_json:
                result = verify_image(sector, f, verbose=not quiet)
                click.echo(json.dumps(result, **CANONICAL_JSON_KW))
                ok = result["status"] == "PASS"
            else:
                out = click.get_text_stream("stdout")
                ok = validate_and_report(sector, f, out, verbose=not quiet, dump_headers=dump_headers) > 0
    except Exception as e:
        # One line, no stack trace.
        click.echo(f"FATAL: {e}")
        raise SystemExit(1)

    if not ok:
        raise SystemExit(2)

if __name__ == "__main__":
    main()
