import argparse
import importlib
import importlib.util
import os
import sys

from pydantic import ValidationError

from exporter import VarExporter, set_verbose
from varexport.config import FormatterConfig, FormatterMode
from varexport.errors import ExportError


def log(message):
    """Log informational messages to stderr."""
    print(f"\033[92m\033[1mINFO:\033[0m {message}", file=sys.stderr)


def load_target(target):
    """
    Resolve ``path/to/file.py:NAME`` or ``package.module:NAME`` to a value.

    Loading a file runs it as a module named after the file.
    """
    location, sep, attribute = target.rpartition(":")
    if not sep or not location or not attribute:
        raise ValueError(f"Target must look like 'module:NAME' or 'file.py:NAME', got '{target}'")

    if location.endswith(".py") or os.sep in location:
        if not os.path.exists(location):
            raise FileNotFoundError(f"File '{location}' not found")
        name = os.path.splitext(os.path.basename(location))[0]
        spec = importlib.util.spec_from_file_location(name, location)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
    else:
        module = importlib.import_module(location)

    value = module
    for part in attribute.split("."):
        value = getattr(value, part)
    return value


def build_config(args):
    return FormatterConfig(
        mode=FormatterMode.PRETTY if args.pretty else FormatterMode.STANDARD,
        indent=" " * args.indent,
        max_depth=args.max_depth,
        sort_keys=args.sort_keys,
        trailing_comma=args.trailing_comma,
    )


def cmd_export(args):
    set_verbose(args.verbose)
    try:
        value = load_target(args.target)
    except (ValueError, FileNotFoundError, ImportError, AttributeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        config = build_config(args)
    except ValidationError as e:
        print(f"Error: Invalid options:\n{e}", file=sys.stderr)
        sys.exit(1)

    exporter = VarExporter(config)
    try:
        if args.assign:
            code = exporter.export_assignment(args.assign, value)
        else:
            code = exporter.export(value) + "\n"
    except ExportError as e:
        print(f"Error: Export Failed:\n{e}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(code)
        log(f"Wrote {args.output}")
    else:
        sys.stdout.write(code)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Export a Python value as Python source")
    parser.add_argument("target", help="Value to export: 'path/to/file.py:NAME' or 'package.module:NAME'")
    parser.add_argument("--pretty", action="store_true", help="One container entry per line")
    parser.add_argument("--indent", type=int, default=4, help="Spaces per indentation level (default: 4)")
    parser.add_argument("--max-depth", type=int, default=100, help="Maximum container nesting (default: 100)")
    parser.add_argument("--sort-keys", action="store_true", help="Sort dict keys: integers first, then strings")
    parser.add_argument("--trailing-comma", action="store_true", help="Add a comma after the last entry in pretty mode")
    parser.add_argument("--assign", metavar="NAME", help="Emit 'NAME = <value>' as a small module")
    parser.add_argument("--output", "-o", help="Write to a file instead of stdout")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")

    args = parser.parse_args(argv)
    cmd_export(args)


if __name__ == "__main__":
    main()
