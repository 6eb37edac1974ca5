# rgbclient/cli/main.py
from __future__ import annotations

from typing import Optional

from rgbclient.core.errors import RgbClientError

from rgbclient.cli.args import parse_args
from rgbclient.cli.commands import cmd_watch


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args = parse_args(argv)

        if args.cmd == "watch":
            return cmd_watch(args)

        return 2
    except RgbClientError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
