import argparse
import json
import sys

from rich.console import Console

from .api import PERSONALITIES, CareApi
from .log import setup_logging

console = Console()


def build_parser():
    parser = argparse.ArgumentParser(prog="moltmon", description="Raise a Moltmon in your terminal.")
    parser.add_argument("--log-level", default=None, help="logging level (default: $MOLTMON_LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command")

    watch = sub.add_parser("watch", help="show the pet and keep it alive (the ticking process)")
    watch.add_argument("-d", "--dev-mode", action="store_true", help="use fast timers")

    sub.add_parser("feed", help="feed a hungry pet")
    sub.add_parser("clean", help="clean up poop")
    sub.add_parser("heal", help="heal a sick pet")
    hatch = sub.add_parser("hatch", help="hatch the egg")
    hatch.add_argument("personality", help=f"your personality, e.g. {' or '.join(PERSONALITIES)}")
    sub.add_parser("status", help="print the current pet state")
    sub.add_parser("summary", help="print the current pet's stats")
    sub.add_parser("history", help="print every pet so far")
    return parser


def print_result(result):
    if result.success:
        data = result.data
        if isinstance(data, dict) and set(data) <= {"message", "creatureId", "personality"}:
            console.print(f"[green]{data['message']}[/green]")
        else:
            console.print_json(json.dumps(data))
        return 0
    console.print(f"[bold red]{result.error}[/bold red]")
    return 1


def main(argv=None):
    args = build_parser().parse_args(argv)
    command = args.command or "watch"

    if command == "watch":
        from .terminal import run
        return run(dev_mode=getattr(args, "dev_mode", False), log_level=args.log_level)

    setup_logging(args.log_level)
    api = CareApi()
    actions = {
        "feed": api.feed,
        "clean": api.clean,
        "heal": api.heal,
        "hatch": lambda: api.hatch(args.personality),
        "status": api.get_formatted_state,
        "summary": api.get_current_pet_summary,
        "history": api.get_history,
    }
    return print_result(actions[command]())


if __name__ == "__main__":
    sys.exit(main())
