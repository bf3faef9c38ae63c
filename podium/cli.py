#!/usr/bin/env python3
"""
podium/cli.py - Command line interface for podium

Usage:
    podium shares <linear|exponential|uniform|custom> <positions> [--weight W] [--custom 5000,3000,...] [--amount N]
    podium phase --game-start T --game-end T --submission S [--registration-start T --registration-end T] [--at T]
    podium claim-key <kind> [a] [b]
    podium config [--path FILE]
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


DISTRIBUTION_KINDS = ("linear", "exponential", "uniform", "custom")

CLAIM_KINDS = (
    "prize-single",
    "prize-distributed",
    "entry-fee-position",
    "tournament-creator",
    "game-creator",
    "refund",
    "additional-share",
)


def _parse_distribution(args):
    from podium.distribution import Custom, Exponential, Linear, Uniform

    if args.kind == "custom":
        if not args.custom:
            raise ValueError("--custom is required for a custom distribution")
        return Custom(tuple(int(s) for s in args.custom.split(",")))
    if args.kind == "uniform":
        return Uniform()
    if args.weight is None:
        raise ValueError(f"--weight is required for a {args.kind} distribution")
    if args.kind == "linear":
        return Linear(args.weight)
    return Exponential(args.weight)


def cmd_shares(args):
    """Print the basis-point split of a distribution."""
    from rich.console import Console
    from rich.table import Table

    from podium.distribution import calculate_shares, split_amount
    from podium.errors import PreconditionError

    try:
        distribution = _parse_distribution(args)
        shares = calculate_shares(distribution, args.positions)
    except (ValueError, PreconditionError) as e:
        logger.error(str(e))
        return 1

    console = Console()
    table = Table(title=f"{distribution!r} over {args.positions} positions", header_style="bold cyan")
    table.add_column("Position", justify="right")
    table.add_column("Share (bps)", justify="right")
    table.add_column("Share (%)", justify="right")
    if args.amount is not None:
        table.add_column("Amount", justify="right")
        amounts = split_amount(args.amount, shares)

    for i, share in enumerate(shares):
        row = [str(i + 1), str(share), f"{share / 100:.2f}"]
        if args.amount is not None:
            row.append(str(amounts[i]))
        table.add_row(*row)

    table.add_row("Total", str(sum(shares)), f"{sum(shares) / 100:.2f}", style="bold")
    console.print(table)
    return 0


def cmd_phase(args):
    """Show which phase a schedule is in at a given time."""
    from rich.console import Console
    from rich.table import Table

    from podium.schedule import Period, Phase, Schedule, current_phase

    registration = None
    if args.registration_start is not None or args.registration_end is not None:
        if args.registration_start is None or args.registration_end is None:
            logger.error("--registration-start and --registration-end go together")
            return 1
        registration = Period(args.registration_start, args.registration_end)

    schedule = Schedule(
        game=Period(args.game_start, args.game_end),
        submission_duration=args.submission,
        registration=registration,
    )
    now = args.at if args.at is not None else int(time.time())
    phase = current_phase(now, schedule)

    console = Console()
    table = Table(title="Schedule", header_style="bold cyan")
    table.add_column("Phase")
    table.add_column("From", justify="right")
    table.add_column("Until", justify="right")

    bounds = [(Phase.SCHEDULED, None, schedule.opens_at)]
    if registration is not None:
        bounds.append((Phase.REGISTRATION, registration.start, registration.end))
        bounds.append((Phase.STAGING, registration.end, schedule.game.start))
    bounds += [
        (Phase.LIVE, schedule.game.start, schedule.game.end),
        (Phase.SUBMISSION, schedule.game.end, schedule.submission_end),
        (Phase.FINALIZED, schedule.submission_end, None),
    ]
    for p, start, end in bounds:
        style = "bold green" if p == phase else None
        table.add_row(p.name, "" if start is None else str(start), "" if end is None else str(end), style=style)

    console.print(table)
    console.print(f"[bold]At {now}:[/bold] {phase.name}")
    return 0


def cmd_claim_key(args):
    """Print the claim-ledger key of a reward."""
    from podium import claims

    a, b = args.a, args.b
    descriptor = {
        "prize-single": lambda: claims.PrizeSingle(a),
        "prize-distributed": lambda: claims.PrizeDistributed(a, b),
        "entry-fee-position": lambda: claims.EntryFeePosition(a),
        "tournament-creator": claims.TournamentCreatorShare,
        "game-creator": claims.GameCreatorShare,
        "refund": lambda: claims.RefundShare(a),
        "additional-share": lambda: claims.AdditionalShareReward(a),
    }[args.kind]()

    print(f"{descriptor!r}")
    print(f"0x{claims.reward_hash(descriptor).hex()}")
    return 0


def cmd_config(args):
    """Show the effective configuration."""
    from rich.console import Console
    from rich.table import Table

    from podium.config import CONFIG_PATH, load_config

    path = Path(args.path) if args.path else CONFIG_PATH
    config = load_config(path)

    console = Console()
    console.print(f"[bold]Config:[/bold] {path}{'' if path.exists() else ' (not found, defaults)'}")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("chain.chain_id", str(config.chain.chain_id))
    table.add_row("chain.rpc_url", config.chain.rpc_url)
    table.add_row("chain.settlement", config.chain.settlement or "-")
    wallet = config.wallet.address if config.wallet and config.wallet.address else "-"
    table.add_row("wallet.address", wallet)
    for name, value in vars(config.schedule).items():
        table.add_row(f"schedule.{name}", str(value))
    for name, value in vars(config.settlement).items():
        table.add_row(f"settlement.{name}", str(value))
    console.print(table)
    return 0


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog="podium",
        description="Tournament settlement tools",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # shares command
    shares_parser = subparsers.add_parser("shares", help="Show a distribution's per-position shares")
    shares_parser.add_argument("kind", choices=DISTRIBUTION_KINDS, help="Distribution curve")
    shares_parser.add_argument("positions", type=int, help="Number of paid positions")
    shares_parser.add_argument("--weight", "-w", type=int, default=None, help="Curve weight x10 (e.g. 20 = 2.0)")
    shares_parser.add_argument("--custom", default=None, help="Comma-separated bps for custom (e.g. 5000,3000,2000)")
    shares_parser.add_argument("--amount", "-a", type=int, default=None, help="Split this amount too")
    shares_parser.set_defaults(func=cmd_shares)

    # phase command
    phase_parser = subparsers.add_parser("phase", help="Show a schedule's phase at a given time")
    phase_parser.add_argument("--game-start", type=int, required=True, help="Game start (unix seconds)")
    phase_parser.add_argument("--game-end", type=int, required=True, help="Game end (unix seconds)")
    phase_parser.add_argument("--submission", type=int, required=True, help="Submission duration (seconds)")
    phase_parser.add_argument("--registration-start", type=int, default=None, help="Registration start")
    phase_parser.add_argument("--registration-end", type=int, default=None, help="Registration end")
    phase_parser.add_argument("--at", type=int, default=None, help="Timestamp to evaluate (default: now)")
    phase_parser.set_defaults(func=cmd_phase)

    # claim-key command
    key_parser = subparsers.add_parser("claim-key", help="Show the claim key of a reward")
    key_parser.add_argument("kind", choices=CLAIM_KINDS, help="Reward kind")
    key_parser.add_argument("a", type=int, nargs="?", default=0, help="Prize id, position, token id or index")
    key_parser.add_argument("b", type=int, nargs="?", default=0, help="Index (prize-distributed only)")
    key_parser.set_defaults(func=cmd_claim_key)

    # config command
    config_parser = subparsers.add_parser("config", help="Show the effective configuration")
    config_parser.add_argument("--path", default=None, help="Config file (default: ~/.podium/config.toml)")
    config_parser.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
