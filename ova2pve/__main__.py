from __future__ import annotations
import logging
import sys

from .cli.argument_parser import parse_args_with_config
from .core.exceptions import Ova2PveError, format_exception_for_cli
from .core.logger import LOGGER_NAME
from .core.utils import U
from .orchestrator.orchestrator import Orchestrator


def main(argv=None) -> int:
    logger = None
    verbose = 0
    try:
        args, conf, logger = parse_args_with_config(argv)
        verbose = int(args.verbose or 0)
        if args.dump_config:
            print(U.json_dump(conf))
            return 0
        if args.dump_args:
            print(U.json_dump(vars(args)))
            return 0
        return Orchestrator(logger, args).run()
    except Ova2PveError as e:
        # U.die() and U.run_cmd() already logged the failure
        if logger is None and not logging.getLogger(LOGGER_NAME).handlers:
            print(f"💥 ERROR    {e}", file=sys.stderr)
        elif logger is not None and verbose:
            logger.debug(format_exception_for_cli(e, verbose=verbose))
        return e.code
    except KeyboardInterrupt:
        if logger is None:
            print("Interrupted by user (Ctrl+C).", file=sys.stderr)
        else:
            logger.warning("Interrupted by user (Ctrl+C).")
        return 130


def cli() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
