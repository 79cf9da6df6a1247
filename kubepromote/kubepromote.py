#!/usr/bin/env python3
"""Image promotion tool: CLI entrypoint."""

import argparse

from kubepromote.commands.deploy import register_deploy_command
from kubepromote.commands.status import register_status_command
from kubepromote.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Promote a built container image to a Kubernetes Deployment")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every cluster API call")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_deploy_command(subparsers)
    register_status_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
