# minicasino/main.py
import argparse
import asyncio
import getpass
import logging
import sys

from minicasino.application.client_context import CasinoContext
from minicasino.application.settings import load_client_config
from minicasino.domain.events.casino_events import (
    NotificationEvent,
    RoundEventType,
)
from minicasino.domain.exceptions import ApiError, BetValidationError, ConfigError
from minicasino.domain.game.entities.bet_request import BetRequest, GameMode
from minicasino.infrastructure.logging.log_manager import initialize_logging


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(prog="minicasino", description="Casino mini-games client")

    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to client configuration file (packaged default when omitted)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--log-mode",
        choices=["all", "domain", "http", "none"],
        default=None,
        help="Select logging mode: 'all'=verbose, 'domain'=game/session only, "
             "'http'=requests only, 'none'=errors only"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Sign in")
    login.add_argument("email")
    login.add_argument("--password", help="Prompted for when omitted")

    register = commands.add_parser("register", help="Create an account")
    register.add_argument("username")
    register.add_argument("email")
    register.add_argument("--password", help="Prompted for when omitted")

    commands.add_parser("logout", help="Forget the stored session")
    commands.add_parser("whoami", help="Show the signed-in user and balance")

    spin = commands.add_parser("spin", help="Play one slot round")
    spin.add_argument("--bet", type=int, required=True)

    predict = commands.add_parser("predict", help="Play one number-prediction round")
    predict.add_argument("--bet", type=int, required=True)
    predict.add_argument("--number", type=int, default=None, help="Number from 1 to 14")

    history = commands.add_parser("history", help="List recent rounds")
    history.add_argument("--game", choices=[mode.value for mode in GameMode], default=None)
    history.add_argument("--page", type=int, default=1)

    commands.add_parser("stats", help="Show aggregate statistics")

    profile = commands.add_parser("profile", help="Edit username and/or email")
    profile.add_argument("--username", default=None)
    profile.add_argument("--email", default=None)

    return parser.parse_args(argv)


def apply_log_mode(config, args):
    log_config = config.setdefault("logging", {})
    loggers = log_config.setdefault("loggers", {})

    if args.log_mode == "all":
        log_config["level"] = "DEBUG"
        for name in loggers:
            loggers[name] = {"level": "DEBUG"}
    elif args.log_mode == "domain":
        log_config["level"] = "WARNING"
        loggers["domain"] = {"level": "DEBUG"}
        loggers["infrastructure"] = {"level": "WARNING"}
    elif args.log_mode == "http":
        log_config["level"] = "WARNING"
        loggers["domain"] = {"level": "WARNING"}
        loggers["infrastructure.http"] = {"level": "DEBUG"}
    elif args.log_mode == "none":
        log_config["level"] = "ERROR"
        log_config["loggers"] = {}

    if args.verbose:
        log_config["level"] = "DEBUG"


def print_notification(event: NotificationEvent):
    print(f"[{event.level.value}] {event.message}")


def print_reel_frame(event):
    print("  " + " ".join(event.data.get("reels", [])), end="\r", flush=True)


async def run_command(args, context: CasinoContext) -> int:
    session = context.session
    command = args.command

    if command == "login":
        password = args.password or getpass.getpass("Password: ")
        return 0 if await session.login(args.email, password) else 1

    if command == "register":
        password = args.password or getpass.getpass("Password: ")
        return 0 if await session.register(args.username, args.email, password) else 1

    if not session.is_authenticated:
        print("Not logged in. Run 'minicasino login <email>' first.")
        return 1

    if command == "logout":
        await context.logout()
        return 0

    if command == "whoami":
        identity = session.identity
        balance = context.balance
        print(f"{identity.username} <{identity.email}>")
        print(f"Credits: {balance.credits}  Wins: {balance.total_wins}  "
              f"Losses: {balance.total_losses}  Wagered: {balance.total_wagered}  "
              f"Win rate: {balance.win_rate}%")
        return 0

    if command in ("spin", "predict"):
        if command == "spin":
            request = BetRequest.slot(args.bet)
        else:
            request = BetRequest.prediction_bet(args.bet, args.number)
        controller = context.controller(request.mode)
        try:
            outcome = await controller.play(request)
        except BetValidationError:
            return 1
        if outcome is None:
            return 1
        print()
        print(f"Outcome: {outcome.result.outcome}  Balance: {context.balance.credits}")
        return 0

    try:
        if command == "history":
            entries = await context.history.refresh(args.game, args.page)
            print(f"Page {context.history.page}/{context.history.total_pages}")
            for entry in entries:
                sign = "+" if entry.is_win else "-"
                amount = entry.win_amount if entry.is_win and entry.win_amount else entry.bet_amount
                print(f"{entry.timestamp or '':<25} {entry.game_type:<9} {entry.result:<5} {sign}{amount}")
            return 0

        if command == "stats":
            stats = await context.stats.fetch()
            for mode, count in stats.plays.items():
                print(f"{mode.value}: {count} games")
            print(f"Total: {stats.total_games}")
            if stats.win_rate is not None:
                print(f"Win rate: {stats.win_rate}%")
            return 0

        if command == "profile":
            return 0 if await context.profile.update(args.username, args.email) else 1
    except ApiError as e:
        print(e.display_message(str(e)))
        return 1

    return 1


async def async_main(args, config) -> int:
    context = CasinoContext(config)
    context.event_dispatcher.register_for_class(NotificationEvent, print_notification)
    context.event_dispatcher.register(RoundEventType.REVEAL_TICK, print_reel_frame)
    async with context:
        return await run_command(args, context)


def main(argv=None) -> int:
    """Main entry point for the casino client."""
    args = parse_arguments(argv)

    try:
        config = load_client_config(args.config)
    except ConfigError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 2

    apply_log_mode(config, args)
    logs = initialize_logging(config.get("logging", {}))
    logging.getLogger("main").debug(f"Running command '{args.command}'")

    try:
        return asyncio.run(async_main(args, config))
    except KeyboardInterrupt:
        return 130
    finally:
        logs.shutdown()


if __name__ == "__main__":
    sys.exit(main())
