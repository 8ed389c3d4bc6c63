from __future__ import annotations

import argparse
import json
import logging
from typing import Optional, Sequence

from .config import RoundSettings
from .db.engine import get_sessionmaker, make_engine
from .models import Round
from .raffle.errors import RaffleError
from .workflows import create_round, draw_history, perform_upkeep, summarize_round


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _session_factory(args: argparse.Namespace):
    return get_sessionmaker(make_engine(database_url=args.db_url))


def _load_round(session, name: str) -> Round:
    round_ = Round.get_by_name(session, name)
    if round_ is None:
        raise SystemExit(f"No raffle named {name!r}")
    return round_


def cmd_open_round(args: argparse.Namespace) -> int:
    settings = RoundSettings.from_env(
        entry_fee=args.entry_fee, draw_interval=args.interval
    )
    Session = _session_factory(args)
    with Session.begin() as session:
        round_ = create_round(session, args.name, settings=settings)
        print(f"Opened raffle {round_.name} (fee={round_.entry_fee}, interval={round_.draw_interval}s)")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    Session = _session_factory(args)
    with Session.begin() as session:
        summary = summarize_round(session, _load_round(session, args.name))
    print(json.dumps(summary, indent=2))
    return 0


def cmd_check_upkeep(args: argparse.Namespace) -> int:
    Session = _session_factory(args)
    with Session.begin() as session:
        summary = summarize_round(session, _load_round(session, args.name))
    print("eligible" if summary["eligible"] else "not eligible")
    # Exit status lets shell-based schedulers branch without parsing output.
    return 0 if summary["eligible"] else 1


def cmd_perform_upkeep(args: argparse.Namespace) -> int:
    from .provider.api import RandomnessClient

    log = logging.getLogger("upkeep")
    Session = _session_factory(args)
    with Session.begin() as session:
        round_ = _load_round(session, args.name)
        client = None
        try:
            client = RandomnessClient(base_fqdn=round_.provider_endpoint, timeout=args.timeout)
            draw = perform_upkeep(session, round_, client)
        except (RaffleError, ValueError) as exc:
            log.error("%s", exc)
            return 1
        finally:
            if client is not None:
                client.session.close()
    if draw is None:
        print("Draw not needed")
        return 1
    print(f"Requested randomness {draw.request_id} for {args.name}")
    return 0


def cmd_history(args: argparse.Namespace) -> int:
    Session = _session_factory(args)
    with Session.begin() as session:
        draws = draw_history(session, _load_round(session, args.name), limit=args.limit)
        rows = [
            {
                "cycle": d.cycle,
                "request_id": d.request_id,
                "winner": d.winner,
                "payout_amount": d.payout_amount,
                "random_value": d.random_value,
            }
            for d in draws
        ]
    print(json.dumps(rows, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="rafflepot",
        description="Fixed-fee raffle with provider-driven draws.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--db-url", default=None, help="Override DB_URL (else use env).")

    sub = p.add_subparsers(dest="cmd", required=True)

    o = sub.add_parser("open-round", help="Create a raffle in the OPEN state.")
    o.add_argument("name", help="Unique raffle name.")
    o.add_argument("--entry-fee", type=int, default=None, help="Entry fee (else RAFFLE_ENTRY_FEE).")
    o.add_argument(
        "--interval", type=int, default=None, help="Draw interval seconds (else RAFFLE_DRAW_INTERVAL)."
    )
    o.set_defaults(func=cmd_open_round)

    s = sub.add_parser("status", help="Print a JSON snapshot of a raffle.")
    s.add_argument("name")
    s.set_defaults(func=cmd_status)

    c = sub.add_parser("check-upkeep", help="Exit 0 when a draw may start now.")
    c.add_argument("name")
    c.set_defaults(func=cmd_check_upkeep)

    u = sub.add_parser("perform-upkeep", help="Start a draw if the raffle is eligible.")
    u.add_argument("name")
    u.add_argument("--timeout", type=int, default=45, help="Provider timeout seconds.")
    u.set_defaults(func=cmd_perform_upkeep)

    h = sub.add_parser("history", help="List fulfilled draws, most recent first.")
    h.add_argument("name")
    h.add_argument("--limit", type=int, default=None)
    h.set_defaults(func=cmd_history)

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
