#!/usr/bin/env python3
"""
Faction dashboard auth gateway.
Serves the password check and produces the bcrypt digest it verifies against.
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

#
# NOTE: Keep faction imports lazy (inside functions) so `--hash-password` does not
# pull in the web stack.
#


def read_password(from_stdin: bool = False) -> str:
    """Read the password to hash, either from stdin (first line) or an interactive prompt."""
    if from_stdin:
        return sys.stdin.readline().rstrip("\r\n")
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        raise ValueError("Passwords do not match")
    return first


def hash_command(rounds: int, from_stdin: bool = False) -> int:
    from faction.auth.hasher import hash_password

    try:
        password = read_password(from_stdin=from_stdin)
        digest = hash_password(password, rounds=rounds)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Only the digest goes to stdout so `AUTH_PASSWORD_HASH=$(python main.py --hash-password --stdin)` works.
    print(digest)
    return 0


def main(argv: Optional[list] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Password gateway for the Faction dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Produce a digest for AUTH_PASSWORD_HASH (prompts twice)
  python main.py --hash-password

  # Same, non-interactive
  echo -n 's3cret' | python main.py --hash-password --stdin

  # Run the gateway (PORT defaults to 3000)
  AUTH_PASSWORD_HASH='$2b$12$...' python main.py --serve
        """,
    )
    parser.add_argument("--serve", action="store_true", help="Run the auth gateway HTTP server")
    parser.add_argument("--host", default=None, help="Bind host (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (default: PORT or 3000)")
    parser.add_argument("--hash-password", action="store_true", help="Print a bcrypt digest for a password")
    parser.add_argument("--stdin", action="store_true", help="Read the password from stdin (with --hash-password)")
    parser.add_argument("--rounds", type=int, default=12, help="bcrypt cost factor (default: 12)")

    args = parser.parse_args(argv)

    if args.hash_password:
        return hash_command(args.rounds, from_stdin=args.stdin)

    if args.serve:
        from faction.api.gateway import run

        run(host=args.host, port=args.port)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
