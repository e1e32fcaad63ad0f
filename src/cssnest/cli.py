"""Command-line interface for cssnest."""

from __future__ import annotations

import argparse
import os
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cssnest.errors import CompileError, EncodingError

CONFIG_NAME = "cssnest.toml"


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    minify: bool
    source_maps: bool
    indent: str
    parent_reference: bool
    sources_content: bool
    watch: bool
    debug: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="cssnest",
        description="Compile nested stylesheets to plain CSS",
    )
    sub = p.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="Compile a stylesheet")
    b.add_argument("input", help="Input stylesheet")
    b.add_argument("output", nargs="?", help="Output file (default: stdout)")
    b.add_argument(
        "--minify",
        action="store_true",
        default=None,
        help="Strip whitespace and comments and shorten literals",
    )
    b.add_argument(
        "--source-maps",
        action="store_true",
        default=None,
        help="Write OUTPUT.map next to the output file",
    )
    b.add_argument(
        "--no-parent-reference",
        dest="parent_reference",
        action="store_false",
        default=None,
        help="Treat '&' in nested selectors as plain text",
    )
    b.add_argument(
        "--indent",
        type=int,
        default=None,
        metavar="N",
        help="Spaces per indentation level in pretty output (default: 4)",
    )
    b.add_argument(
        "--config",
        metavar="FILE",
        help=f"Config file (default: auto-discover {CONFIG_NAME})",
    )
    b.add_argument("--watch", action="store_true", help="Watch for changes and recompile")
    b.add_argument("--debug", action="store_true", help="Dump the document tree to stderr")
    return p


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / CONFIG_NAME

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def _config_bool(build: dict[str, Any], key: str, default: bool) -> bool:
    value = build.get(key, default)
    if not isinstance(value, bool):
        raise argparse.ArgumentTypeError(f"config: build.{key} must be true or false")
    return value


def _indent_text(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise argparse.ArgumentTypeError("indent must be a number of spaces or a string")
    if isinstance(value, int):
        if value < 0:
            raise argparse.ArgumentTypeError(f"indent must not be negative: {value}")
        return " " * value
    if value.strip(" \t"):
        raise argparse.ArgumentTypeError(f"indent may only contain spaces and tabs: {value!r}")
    return value


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    build = config.get("build", {})
    if not isinstance(build, dict):
        raise argparse.ArgumentTypeError("config: [build] must be a table")

    minify = _config_bool(build, "minify", False)
    source_maps = _config_bool(build, "source_maps", False)
    parent_reference = _config_bool(build, "parent_reference", True)
    sources_content = _config_bool(build, "sources_content", True)
    indent = _indent_text(build.get("indent", 4))

    if args.minify is not None:
        minify = args.minify
    if args.source_maps is not None:
        source_maps = args.source_maps
    if args.parent_reference is not None:
        parent_reference = args.parent_reference
    if args.indent is not None:
        indent = _indent_text(args.indent)

    output_file = Path(args.output) if args.output else None
    if source_maps and output_file is None:
        raise argparse.ArgumentTypeError("source maps require an output file")

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        minify=minify,
        source_maps=source_maps,
        indent=indent,
        parent_reference=parent_reference,
        sources_content=sources_content,
        watch=args.watch,
        debug=args.debug,
    )


def map_path(output_file: Path) -> Path:
    """Source map location for an output file: out.css -> out.css.map."""
    return output_file.with_name(output_file.name + ".map")


def compile_file(options: CliOptions) -> tuple[str, str | None]:
    """Read and compile the input file; return (css, source map JSON or None)."""
    from cssnest import CompileOptions, compile
    from cssnest.debug import dump_ast
    from cssnest.parser import parse
    from cssnest.sourcemap import dumps

    source = options.input_file.read_text(encoding="utf-8")

    if options.debug:
        dump_ast(parse(source, str(options.input_file)), file=sys.stderr)

    source_name = options.input_file.name
    if options.output_file is not None:
        out_dir = options.output_file.parent if options.output_file.parent.parts else Path(".")
        source_name = Path(os.path.relpath(options.input_file, out_dir)).as_posix()

    result = compile(
        source,
        CompileOptions(
            minify=options.minify,
            source_map=options.source_maps,
            indent=options.indent,
            parent_reference=options.parent_reference,
            sources_content=options.sources_content,
        ),
        filename=source_name,
    )
    if result.source_map is None or options.output_file is None:
        return result.css, None

    payload = dict(result.source_map)
    payload["file"] = options.output_file.name
    css = result.css
    if not options.minify:
        css += f"/*# sourceMappingURL={map_path(options.output_file).name} */\n"
    return css, dumps(payload)


def write_outputs(options: CliOptions, css: str, source_map: str | None) -> None:
    if options.output_file is None:
        sys.stdout.write(css)
        return
    options.output_file.write_text(css, encoding="utf-8")
    if source_map is not None:
        map_path(options.output_file).write_text(source_map, encoding="utf-8")


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, recompile on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    css, source_map = compile_file(options)
                    write_outputs(options, css, source_map)
                    if options.output_file is None:
                        sys.stdout.flush()
                    print(f"Compiled {options.input_file}", file=sys.stderr)
                except CompileError as exc:
                    print(exc.format(str(options.input_file)), file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2/3). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except (argparse.ArgumentTypeError, tomllib.TOMLDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options)
        return 0

    try:
        css, source_map = compile_file(options)
    except EncodingError as exc:
        print(f"internal {exc.format(str(options.input_file))}", file=sys.stderr)
        return 3
    except CompileError as exc:
        print(exc.format(str(options.input_file)), file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: cannot read {options.input_file}: {exc.strerror}", file=sys.stderr)
        return 2
    except UnicodeDecodeError:
        print(f"error: {options.input_file} is not valid UTF-8", file=sys.stderr)
        return 2

    try:
        write_outputs(options, css, source_map)
    except OSError as exc:
        print(f"error: cannot write {exc.filename}: {exc.strerror}", file=sys.stderr)
        return 2
    return 0
