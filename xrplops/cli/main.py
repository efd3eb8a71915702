# xrplops/cli/main.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from xrplops.core.errors import XrplOpsError

from xrplops.cli.args import parse_args, resolve_config
from xrplops.cli.commands import (
    cmd_anonymise,
    cmd_peers,
    cmd_watch,
    configure_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose, Path(args.log_file) if args.log_file else None)

    try:
        if args.cmd == "anonymise":
            return cmd_anonymise(args)

        cfg = resolve_config(args)

        if args.cmd == "peers":
            return cmd_peers(args, cfg)
        if args.cmd == "watch":
            return cmd_watch(args, cfg)

        return 2
    except XrplOpsError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
