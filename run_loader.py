# MIT License © 2025 Motohiro Suzuki
"""
Native library loader runner

- Resolve one library out of the given candidates (search path, then bundled)
- Print what got loaded
- Exit 2 on a bad request, 1 when every candidate failed

Run:
  python3 run_loader.py linux-x86_64/libfoo.so libfoo.so -v
  NLOAD_LIBRARY_PATH=/opt/foo/lib python3 run_loader.py libfoo.so
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from diagnostics.logging_config import setup_logging
from nload_core.config import LoaderConfig
from nload_core.coordinator import LoadCoordinator, canonical_key
from nload_core.errors import LoadErrorKind, NativeLoadError


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Load a native library from the search path or bundled resources.")
    ap.add_argument("candidates", nargs="*", help="alternative relative paths of the library, in preference order")
    ap.add_argument("--extract-dir", default=None, help="directory for extracted libraries [default: $NLOAD_EXTRACT_DIR or temp dir]")
    ap.add_argument("--resource-package", default=None, help="package holding bundled libraries [default: $NLOAD_RESOURCE_PACKAGE]")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap


def make_config(args: argparse.Namespace) -> LoaderConfig:
    env = LoaderConfig.from_env()
    return LoaderConfig(
        extract_dir=args.extract_dir or env.extract_dir,
        resource_package=args.resource_package or env.resource_package,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")

    coord = LoadCoordinator(make_config(args))
    try:
        coord.load(args.candidates)
    except NativeLoadError as e:
        print(f"[loader] {e.kind.value}: {e}", file=sys.stderr)
        return 2 if e.kind is LoadErrorKind.CONFIGURATION else 1

    for name in args.candidates:
        key = canonical_key(name)
        if coord.is_loaded(key):
            print(f"[loader] loaded {key} from {coord.loaded()[key]}")
            break
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
