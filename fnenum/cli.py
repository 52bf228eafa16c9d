"""Command-line entry point."""

from __future__ import annotations

import json
import sys

from .backend import TARGETS
from .diagnostics import Diagnostics
from .frontend.items import ItemLoadError, load_block_json
from .ir import AGGREGATE_MODES
from .pipeline import PHASES, expand, make_context
from .serialize import classified_to_dict, descriptor_to_dict, enum_to_dict

USAGE: str = """\
fnenum [OPTIONS] [INPUT] [-o OUTPUT]

Reads a JSON block description and writes the generated union, shims and
dispatcher for it.

Options:
  --target TARGET      Output language: python (default), rust
  --enum NAME          Union type name (default: <Block>Outcome)
  --pub                Make generated items public
  --aggregate MODE     auto (default), off, select, all
  --source-module MOD  Python: import the block class from MOD
  --stop-at PHASE      Stop after phase: collect, classify, synthesize
  -o, --output FILE    Write output to FILE instead of stdout
  --help               Show this help message
"""


class Options:
    """Parsed command-line options."""

    def __init__(self) -> None:
        self.target: str = "python"
        self.enum_name: str = ""
        self.public: bool = False
        self.aggregate: str = "auto"
        self.source_module: str | None = None
        self.stop_at: str | None = None
        self.input_file: str | None = None
        self.output_file: str | None = None


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        return (raw.decode("utf-8"), 0)
    except UnicodeDecodeError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w") as f:
                f.write(output)
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    sys.stdout.write(output)
    return 0


def to_json(obj: object) -> str:
    """Serialize object to pretty-printed JSON."""
    return json.dumps(obj, indent=2) + "\n"


def _print_diagnostics(diags: Diagnostics) -> None:
    for diag in diags.items:
        print(str(diag), file=sys.stderr)


def run_pipeline(source: str, opts: Options) -> tuple[int, str]:
    """Run the expansion pipeline. Returns (exit_code, output)."""
    try:
        block = load_block_json(source)
    except ItemLoadError as e:
        print(str(e), file=sys.stderr)
        return (1, "")
    ctx = make_context(
        block,
        target=opts.target,
        enum_name=opts.enum_name,
        public=opts.public,
        aggregate=opts.aggregate,  # type: ignore[arg-type]
        source_module=opts.source_module,
    )
    result = expand(block.items, ctx, opts.stop_at)
    _print_diagnostics(result.diagnostics)
    if not result.ok():
        return (1, "")
    if opts.stop_at == "collect":
        return (0, to_json([descriptor_to_dict(fn) for fn in result.descriptors]))
    if opts.stop_at == "classify" and result.classified is not None:
        return (0, to_json(classified_to_dict(result.classified)))
    if opts.stop_at == "synthesize" and result.union is not None:
        return (0, to_json(enum_to_dict(result.union)))
    if result.code is None:
        print("error: expansion produced no code", file=sys.stderr)
        return (1, "")
    return (0, result.code)


def _take_value(args: list[str], i: int) -> str:
    if i + 1 >= len(args):
        print("error: " + args[i] + " requires an argument", file=sys.stderr)
        sys.exit(2)
    return args[i + 1]


def parse_args(args: list[str]) -> Options:
    """Parse command-line arguments."""
    opts = Options()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--target":
            opts.target = _take_value(args, i)
            i += 2
        elif arg == "--enum":
            opts.enum_name = _take_value(args, i)
            i += 2
        elif arg == "--aggregate":
            opts.aggregate = _take_value(args, i)
            i += 2
        elif arg == "--source-module":
            opts.source_module = _take_value(args, i)
            i += 2
        elif arg == "--stop-at":
            opts.stop_at = _take_value(args, i)
            i += 2
        elif arg == "-o" or arg == "--output":
            opts.output_file = _take_value(args, i)
            i += 2
        elif arg == "--pub":
            opts.public = True
            i += 1
        elif arg.startswith("-"):
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if opts.input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            opts.input_file = arg
            i += 1
    if opts.target not in TARGETS:
        print("error: unknown target '" + opts.target + "'", file=sys.stderr)
        sys.exit(2)
    if opts.aggregate not in AGGREGATE_MODES:
        print("error: unknown aggregate mode '" + opts.aggregate + "'", file=sys.stderr)
        sys.exit(2)
    if opts.stop_at is not None and opts.stop_at not in PHASES:
        print("error: unknown phase '" + opts.stop_at + "'", file=sys.stderr)
        sys.exit(2)
    return opts


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    opts = parse_args(sys.argv[1:] if argv is None else argv)
    source, err = read_source(opts.input_file)
    if err != 0:
        return err
    if len(source.strip()) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    exit_code, output = run_pipeline(source, opts)
    if exit_code != 0:
        return exit_code
    return write_output(output, opts.output_file)


if __name__ == "__main__":
    sys.exit(main())
