import csv
from decimal import Decimal
from typing import Dict, List, TextIO, Tuple

from models import MONEY_CONTEXT, ClientAccount, ZERO, round_money

HEADER = ("client", "available", "held", "total", "locked")


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = round_money(value).normalize(MONEY_CONTEXT)
    if normalized == ZERO:
        return "0"
    return f"{normalized:f}"


def snapshot_rows(accounts: Dict[int, ClientAccount]) -> List[Tuple[str, ...]]:
    """One row per account, sorted by client id."""
    rows = []
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        rows.append((
            str(client_id),
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ))
    return rows


def write_snapshot(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADER)
    writer.writerows(snapshot_rows(accounts))
