import logging
import os
import sys
from decimal import Decimal, localcontext
from typing import Dict, List, Optional, TextIO

from errors import TransactionError
from models import ClientState
from payments_engine import PaymentsEngine

USAGE = "Usage: python main.py [--strict] [input.csv]"
HEADER = "client,available,held,total,locked"


def configure_logging() -> None:
    level_name = os.environ.get("PAYMENTS_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus four decimal places
        ctx.prec = max(ctx.prec, value.adjusted() + 6)
        normalized = value.quantize(Decimal("0.0001")).normalize()
    if normalized.is_zero():
        return "0"
    return f"{normalized:f}"


def write_accounts(accounts: Dict[int, ClientState], out: TextIO) -> None:
    print(HEADER, file=out)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        print(
            f"{client_id},"
            f"{format_decimal(account.available)},"
            f"{format_decimal(account.held)},"
            f"{format_decimal(account.total)},"
            f"{str(account.locked).lower()}",
            file=out,
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)

    strict = "--strict" in args
    args = [arg for arg in args if arg != "--strict"]
    if len(args) > 1 or any(arg.startswith("--") for arg in args):
        print(USAGE, file=sys.stderr)
        return 1

    configure_logging()

    filepath = args[0] if args else "-"
    engine = PaymentsEngine(strict=strict)
    try:
        accounts = engine.process_file(filepath)
    except OSError as e:
        print(f"Could not read {filepath}: {e}", file=sys.stderr)
        return 1
    except TransactionError as e:
        print(f"Aborting: {e}", file=sys.stderr)
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
