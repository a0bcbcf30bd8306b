from __future__ import annotations

# Single-entrypoint runner.
#
# CLEAN CLI:
# - Run whatever roles the profiles select (HELLO_PROFILES or --profiles):
#     python -m hello_queue.app run --profiles sender,receiver
# - Shortcuts for a single role:
#     python -m hello_queue.app sender
#     python -m hello_queue.app receiver
# - Local demo, one sender + N receivers as child processes:
#     python -m hello_queue.app demo --receivers 2
#
# Every flag defaults to the matching HELLO_* setting.

import argparse

from .bootstrap import RECEIVER, SENDER, run
from .config import Settings, get_settings
from .logs import setup_logging


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hello queue (MQTT) - main entrypoint")
    sub = parser.add_subparsers(dest="cmd", required=True)

    def add_common_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--mqtt-host", default=settings.mqtt_host)
        p.add_argument("--mqtt-port", type=int, default=settings.mqtt_port)
        p.add_argument("--namespace", default=settings.namespace)
        p.add_argument("--log-level", default=settings.log_level)

    p_run = sub.add_parser("run", help="Run the roles selected by profiles")
    add_common_args(p_run)
    p_run.add_argument(
        "--profiles",
        default=settings.profiles,
        help="comma separated: sender, receiver (default: $HELLO_PROFILES)",
    )

    p_snd = sub.add_parser("sender", help="Run the sender role only")
    add_common_args(p_snd)

    p_rcv = sub.add_parser("receiver", help="Run the receiver role only")
    add_common_args(p_rcv)
    p_rcv.add_argument("--workers", type=int, default=settings.receiver_workers)

    p_demo = sub.add_parser("demo", help="Start one sender and N receivers as child processes")
    add_common_args(p_demo)
    p_demo.add_argument("--receivers", type=int, default=2)

    return parser


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    args = build_parser(settings).parse_args(argv)

    update: dict[str, object] = {
        "mqtt_host": args.mqtt_host,
        "mqtt_port": args.mqtt_port,
        "namespace": args.namespace,
        "log_level": args.log_level,
    }
    if args.cmd == "run":
        update["profiles"] = args.profiles
    elif args.cmd == "sender":
        update["profiles"] = SENDER
    elif args.cmd == "receiver":
        update["profiles"] = RECEIVER
        update["receiver_workers"] = args.workers
    settings = settings.model_copy(update=update)

    setup_logging(settings)

    if args.cmd == "demo":
        from .run_all import run_all

        run_all(
            mqtt_host=settings.mqtt_host,
            mqtt_port=settings.mqtt_port,
            namespace=settings.namespace,
            num_receivers=args.receivers,
        )
        return

    run(settings)


if __name__ == "__main__":
    main()
