from __future__ import annotations

"""
tokenledger.cli
---------------

Operate a SQLite-backed token ledger from the shell. Every command opens the
database given by ``--db`` (default: ``$TOKENLEDGER_DB_PATH`` or
``tokenledger.db``), runs one operation, and prints JSON.

Accounts are hex strings (``0x``-prefixed or bare). The caller of a mutating
command is passed explicitly with ``--caller``; this tool does no
authentication.

Examples
--------
# Create a token with 1000 units held by 0xaa..
tokenledger init --name "Test Token" --symbol TST --decimals 18 --supply 1000 --holder 0xaaaa

# Move value and inspect it
tokenledger transfer --caller 0xaaaa --to 0xbbbb 300
tokenledger balance 0xbbbb
tokenledger approve --caller 0xaaaa --spender 0xcccc 100
tokenledger transfer-from --caller 0xcccc --owner 0xaaaa --to 0xdddd 60
tokenledger events --since 0

Ledger rejections print ``{"error": {...}}`` to stderr and exit with code 1.
"""

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import typer

from .config import load_config
from .errors import LedgerError
from .events import LedgerEvent
from .ledger import Ledger
from .log import configure_logging
from .types import TokenMetadata, format_account, parse_account

app = typer.Typer(
    name="tokenledger",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect and operate a fungible-token ledger stored in SQLite.",
)

# -------------------- utils --------------------


def _account(value: str) -> bytes:
    try:
        return parse_account(value)
    except ValueError:
        raise typer.BadParameter(f"not a hex account id: {value!r}") from None


def _event_dict(seq: int, ev: LedgerEvent) -> Dict[str, Any]:
    args = {
        k: (format_account(v) if isinstance(v, (bytes, bytearray)) else v)
        for k, v in ev.to_dict().items()
    }
    return {"seq": seq, "name": ev.name, "args": args}


def _emit_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


@contextmanager
def _ledger(ctx: typer.Context) -> Iterator[Ledger]:
    ledger = Ledger.open(ctx.obj["db"])
    try:
        yield ledger
    except LedgerError as e:
        typer.echo(json.dumps({"error": e.to_dict()}, sort_keys=True), err=True)
        raise typer.Exit(1)
    finally:
        ledger.close()


def _mutate(ctx: typer.Context, op: str, *args: Any) -> None:
    with _ledger(ctx) as ledger:
        seq = len(ledger.events)
        ev = getattr(ledger, op)(*args)
        _emit_json({"ok": True, "event": _event_dict(seq, ev)})


# -------------------- commands --------------------


@app.callback()
def main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", help="SQLite database path."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, ...)."),
) -> None:
    cfg = load_config()
    configure_logging(log_level or cfg.log_level)
    ctx.obj = {"db": db or cfg.db_path}


@app.command("init")
def cmd_init(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Display name."),
    symbol: str = typer.Option(..., "--symbol", help="Ticker symbol."),
    decimals: Optional[int] = typer.Option(None, "--decimals", help="Decimal precision (default from config)."),
    supply: int = typer.Option(..., "--supply", help="Initial total supply in base units."),
    holder: str = typer.Option(..., "--holder", help="Account credited with the initial supply."),
    owner: Optional[str] = typer.Option(None, "--owner", help="Supply owner allowed to mint (default: holder)."),
) -> None:
    """Initialize the ledger (one-time)."""
    dec = load_config().default_decimals if decimals is None else decimals
    meta = TokenMetadata(name=name, symbol=symbol, decimals=dec)
    with _ledger(ctx) as ledger:
        ev = ledger.initialize(
            meta, supply, _account(holder), owner=_account(owner) if owner else None
        )
        _emit_json({"ok": True, "event": _event_dict(0, ev)})


@app.command("info")
def cmd_info(ctx: typer.Context) -> None:
    """Show token metadata, total supply and owner."""
    with _ledger(ctx) as ledger:
        _emit_json(
            {
                "initialized": ledger.is_initialized(),
                "name": ledger.name(),
                "symbol": ledger.symbol(),
                "decimals": ledger.decimals(),
                "total_supply": ledger.total_supply(),
                "owner": format_account(ledger.owner()) if ledger.owner() else None,
                "holders": len(ledger.holders()),
                "events": len(ledger.events),
            }
        )


@app.command("balance")
def cmd_balance(ctx: typer.Context, account: str = typer.Argument(..., help="Account id (hex).")) -> None:
    with _ledger(ctx) as ledger:
        acct = _account(account)
        _emit_json({"account": format_account(acct), "balance": ledger.balance_of(acct)})


@app.command("allowance")
def cmd_allowance(
    ctx: typer.Context,
    owner: str = typer.Argument(..., help="Owner account id (hex)."),
    spender: str = typer.Argument(..., help="Spender account id (hex)."),
) -> None:
    with _ledger(ctx) as ledger:
        o, s = _account(owner), _account(spender)
        _emit_json(
            {"owner": format_account(o), "spender": format_account(s), "allowance": ledger.allowance(o, s)}
        )


@app.command("transfer")
def cmd_transfer(
    ctx: typer.Context,
    amount: int = typer.Argument(..., help="Amount in base units."),
    caller: str = typer.Option(..., "--caller", help="Sending account."),
    to: str = typer.Option(..., "--to", help="Recipient account."),
) -> None:
    _mutate(ctx, "transfer", _account(caller), _account(to), amount)


@app.command("transfer-from")
def cmd_transfer_from(
    ctx: typer.Context,
    amount: int = typer.Argument(..., help="Amount in base units."),
    caller: str = typer.Option(..., "--caller", help="Spender using its allowance."),
    owner: str = typer.Option(..., "--owner", help="Account debited."),
    to: str = typer.Option(..., "--to", help="Recipient account."),
) -> None:
    _mutate(ctx, "transfer_from", _account(caller), _account(owner), _account(to), amount)


@app.command("approve")
def cmd_approve(
    ctx: typer.Context,
    amount: int = typer.Argument(..., help="Absolute allowance."),
    caller: str = typer.Option(..., "--caller", help="Owner granting the allowance."),
    spender: str = typer.Option(..., "--spender", help="Spender receiving the allowance."),
) -> None:
    _mutate(ctx, "approve", _account(caller), _account(spender), amount)


@app.command("increase-allowance")
def cmd_increase_allowance(
    ctx: typer.Context,
    delta: int = typer.Argument(..., help="Amount to add."),
    caller: str = typer.Option(..., "--caller"),
    spender: str = typer.Option(..., "--spender"),
) -> None:
    _mutate(ctx, "increase_allowance", _account(caller), _account(spender), delta)


@app.command("decrease-allowance")
def cmd_decrease_allowance(
    ctx: typer.Context,
    delta: int = typer.Argument(..., help="Amount to subtract."),
    caller: str = typer.Option(..., "--caller"),
    spender: str = typer.Option(..., "--spender"),
) -> None:
    _mutate(ctx, "decrease_allowance", _account(caller), _account(spender), delta)


@app.command("mint")
def cmd_mint(
    ctx: typer.Context,
    amount: int = typer.Argument(...),
    caller: str = typer.Option(..., "--caller", help="Supply owner."),
    to: str = typer.Option(..., "--to"),
) -> None:
    _mutate(ctx, "mint", _account(caller), _account(to), amount)


@app.command("burn")
def cmd_burn(
    ctx: typer.Context,
    amount: int = typer.Argument(...),
    caller: str = typer.Option(..., "--caller"),
) -> None:
    _mutate(ctx, "burn", _account(caller), amount)


@app.command("burn-from")
def cmd_burn_from(
    ctx: typer.Context,
    amount: int = typer.Argument(...),
    caller: str = typer.Option(..., "--caller"),
    owner: str = typer.Option(..., "--owner"),
) -> None:
    _mutate(ctx, "burn_from", _account(caller), _account(owner), amount)


@app.command("events")
def cmd_events(
    ctx: typer.Context,
    since: int = typer.Option(0, "--since", help="First sequence number to show."),
) -> None:
    """List emitted events in order."""
    with _ledger(ctx) as ledger:
        start = max(0, since)
        _emit_json([_event_dict(start + i, ev) for i, ev in enumerate(ledger.events.since(start))])


@app.command("check")
def cmd_check(ctx: typer.Context) -> None:
    """Verify sum(balances) == total_supply."""
    with _ledger(ctx) as ledger:
        ledger.check_invariants()
        _emit_json({"ok": True, "total_supply": ledger.total_supply()})


if __name__ == "__main__":  # pragma: no cover
    app()
