#!/usr/bin/env python3
"""
Render an advisory receipt to a static HTML file, optionally sending it to a
print command once the delay has passed.
Usage:
    python print_receipt.py --query "category=Fungal&stage=Flowering" --layout roll --output receipt.html
    python print_receipt.py --query "..." --print-command "lp -d thermal80"
"""
import argparse
import logging
import shlex
import subprocess
import threading
from pathlib import Path

import config
from advisory import decode_query
from app import app, brand_info, now_local
from print_trigger import PrintTrigger
from receipt_view import LAYOUTS, build_receipt, render_receipt

logger = logging.getLogger("cropsync-receipt")

# shell convention for "command not found"
PRINT_COMMAND_UNAVAILABLE = 127


def write_receipt(query: str, layout_name: str, output: Path, delay_ms: int) -> Path:
    layout = LAYOUTS[layout_name]
    record = decode_query(query, now_local())
    view = build_receipt(record, layout)
    with app.app_context():
        html = render_receipt(view, PrintTrigger(delay_ms=delay_ms), brand_info())
    output.write_text(html, encoding="utf-8")
    logger.info("Wrote %s receipt %s to %s", layout.name, record.receipt_id, output)
    return output


def send_to_printer(command: str, path: Path):
    argv = shlex.split(command) + [str(path)]
    try:
        result = subprocess.run(argv, capture_output=True, text=True)
    except OSError:
        logger.exception("Could not run print command %s", argv[0])
        return PRINT_COMMAND_UNAVAILABLE
    if result.returncode == 0:
        logger.info("Print command finished: %s", " ".join(argv))
    else:
        logger.error(
            "Print command failed (%d): %s", result.returncode, result.stderr.strip()
        )
    return result.returncode


def main():
    parser = argparse.ArgumentParser(
        description="Render a printable advisory receipt from a query string"
    )
    parser.add_argument(
        "--query", default="", help="URL query string, with or without the leading '?'"
    )
    parser.add_argument(
        "--layout", choices=sorted(LAYOUTS), default="label", help="Receipt form factor"
    )
    parser.add_argument(
        "--output", default="receipt.html", help="Output filename for the HTML receipt"
    )
    parser.add_argument(
        "--print-command",
        default="",
        help="Command that prints the file (the path is appended), e.g. 'lp -d thermal80'",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=config.PRINT_DELAY_MS,
        help="Delay before printing, in milliseconds",
    )
    args = parser.parse_args()

    if args.delay_ms < 0:
        raise SystemExit("--delay-ms must not be negative")

    output = write_receipt(args.query, args.layout, Path(args.output), args.delay_ms)
    print(f"✓ Receipt written: {output}")

    if not args.print_command:
        print("\nOpen it in a browser; the print dialog opens by itself.")
        return

    done = threading.Event()
    outcome = {}

    def fire():
        try:
            outcome["code"] = send_to_printer(args.print_command, output)
        finally:
            done.set()

    trigger = PrintTrigger(fire, delay_ms=args.delay_ms)
    trigger.mount()
    try:
        done.wait()
    except KeyboardInterrupt:
        trigger.teardown()
        raise SystemExit("Cancelled before printing")

    code = outcome.get("code", 1)
    if code:
        raise SystemExit(code)
    print(f"✓ Sent to printer: {args.print_command}")


if __name__ == "__main__":
    main()
