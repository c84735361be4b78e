"""CLI entry point for tsgridkit.

Enables ``python -m tsgridkit <command>`` usage.

Subcommands:
    doctor   : Environment check: core dependencies.
    describe : Machine-readable API schema (JSON to stdout).
    version  : Print tsgridkit version.
    transpose: Saved collection to a time-major CSV file.
    clean    : Drop instants with missing values and save the result.
    stats    : Per-series summary statistics.
"""

from __future__ import annotations

import argparse
import importlib
import json
import sys


def _check_import(module_name: str) -> tuple[bool, str | None]:
    """Try importing a module and return (success, version_or_none)."""
    try:
        mod = importlib.import_module(module_name)
        version = getattr(mod, "__version__", getattr(mod, "VERSION", None))
        return True, str(version) if version is not None else "installed"
    except ImportError:
        return False, None


def _cmd_doctor() -> int:
    """Run environment diagnostics."""
    import tsgridkit

    print(f"tsgridkit {tsgridkit.__version__}")
    print(f"Python {sys.version}")
    print()

    core_deps = [
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("pydantic", "pydantic"),
    ]

    print("Core dependencies:")
    all_core_ok = True
    for display_name, module_name in core_deps:
        ok, version = _check_import(module_name)
        status = f"  {version}" if ok else "  NOT INSTALLED"
        marker = "ok" if ok else "MISSING"
        print(f"  [{marker:>7s}] {display_name}{status}")
        if not ok:
            all_core_ok = False

    print()

    if all_core_ok:
        print("All systems go.")
    else:
        print("WARNING: Some core dependencies are missing. Install with:")
        print("  pip install tsgridkit")

    return 0


def _cmd_describe() -> int:
    """Print machine-readable API schema as JSON."""
    from tsgridkit.discovery import describe

    json.dump(describe(), sys.stdout, indent=2, default=str)
    print()
    return 0


def _cmd_version() -> int:
    """Print version string."""
    import tsgridkit

    print(tsgridkit.__version__)
    return 0


def _cmd_transpose(source: str, output: str, partitions: int | None) -> int:
    from tsgridkit.io.csv import load_csv

    frame = load_csv(source).to_instants_frame(partitions)
    frame.to_csv(output, index=False)
    print(f"Wrote {len(frame)} instant(s) x {frame.shape[1] - 1} series to {output}")
    return 0


def _cmd_clean(source: str, output: str) -> int:
    from tsgridkit.io.csv import load_csv, save_csv

    collection = load_csv(source)
    cleaned = collection.remove_instants_with_nans()
    save_csv(cleaned, output)
    print(f"Kept {cleaned.index.size} of {collection.index.size} instant(s); saved to {output}")
    return 0


def _cmd_stats(source: str) -> int:
    from tsgridkit.io.csv import load_csv

    print(load_csv(source).series_stats().to_string())
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="tsgridkit",
        description="tsgridkit: partitioned time series with series-major/time-major reshaping",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("doctor", help="Environment check: core dependencies")
    subparsers.add_parser("describe", help="Machine-readable API schema (JSON)")
    subparsers.add_parser("version", help="Print version")

    transpose = subparsers.add_parser("transpose", help="Saved collection to time-major CSV")
    transpose.add_argument("source", help="Directory written by save_csv")
    transpose.add_argument("output", help="Destination CSV file")
    transpose.add_argument("--partitions", type=int, default=None, help="Shuffle partitions")

    clean = subparsers.add_parser("clean", help="Drop instants missing in any series")
    clean.add_argument("source", help="Directory written by save_csv")
    clean.add_argument("output", help="Destination directory")

    stats = subparsers.add_parser("stats", help="Per-series summary statistics")
    stats.add_argument("source", help="Directory written by save_csv")

    args = parser.parse_args(argv)

    if args.command == "doctor":
        return _cmd_doctor()
    elif args.command == "describe":
        return _cmd_describe()
    elif args.command == "version":
        return _cmd_version()
    elif args.command == "transpose":
        return _cmd_transpose(args.source, args.output, args.partitions)
    elif args.command == "clean":
        return _cmd_clean(args.source, args.output)
    elif args.command == "stats":
        return _cmd_stats(args.source)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
