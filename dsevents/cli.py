"""
dslistevents - listen to DocuShare events and print them.

Usage:
    dslistevents -u <username> -p <password> [-h <host>] [-port <rmiport>] [-d <domain>]

Anything not given on the command line is read from DS_HOST, DS_PORT,
DS_DOMAIN, DS_USERNAME and DS_PASSWORD.
"""

import argparse
import logging
from typing import List, Mapping, Optional

from .bootstrap import bootstrap
from .config import ConnectionConfig
from .exceptions import (
    AuthenticationError,
    DSError,
    InvalidLicenseError,
    ServerUnreachableError,
    SSLVerificationError,
)
from .printer import EventPrinter

PROG_NAME = "dslistevents"
PORT_ERROR = "The RMI port must be an integer."

logger = logging.getLogger("dsevents")


def _port(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(PORT_ERROR)


def build_parser() -> argparse.ArgumentParser:
    # -h is the host, so help is --help only
    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Listen to DocuShare events and print a description of each one.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("-u", dest="username", metavar="username", help="Username to login as.")
    parser.add_argument("-p", dest="password", metavar="password", help="User password")
    parser.add_argument("-h", dest="host", metavar="host", help="DocuShare host")
    parser.add_argument("-port", dest="port", metavar="rmiport", type=_port, help="DS host RMI port")
    parser.add_argument("-d", dest="domain", metavar="domain", help="DocuShare domain")
    parser.add_argument("--tls", dest="use_tls", action="store_true", default=None,
                        help="Use https/wss to talk to the server")
    parser.add_argument("--ssl-sha256", dest="ssl_sha256", metavar="fingerprint",
                        help="Expected SHA256 fingerprint of the server certificate")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    parser.add_argument("--help", action="help", help="Show this help message and exit")
    return parser


def parse_config(argv: Optional[List[str]] = None,
                 environ: Optional[Mapping[str, str]] = None):
    """
    Parse the command line into (ConnectionConfig, verbose).

    Prints usage and exits with status 2 on missing credentials or a bad port.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ConnectionConfig.from_env(
            environ,
            username=args.username,
            password=args.password,
            host=args.host,
            port=args.port,
            domain=args.domain,
            use_tls=args.use_tls,
            ssl_sha256=args.ssl_sha256,
        )
    except ValueError:
        # Only DS_PORT can get here; -port is checked by argparse
        parser.error(PORT_ERROR)

    if not config.username or config.password is None:
        parser.error("the following arguments are required: -u, -p")

    return config, args.verbose


def _report_bootstrap_error(config: ConnectionConfig, error: DSError):
    if isinstance(error, ServerUnreachableError):
        print(f"Unable to reach the DocuShare server at {config.endpoint}.")
        print(error.message)
    elif isinstance(error, InvalidLicenseError):
        print("The DocuShare server does not have the required license.")
    elif isinstance(error, AuthenticationError):
        print(error.message)
    elif isinstance(error, SSLVerificationError):
        print(f"SSL error: {error.message}")
    else:
        print(f"Connection failed: {error.message}")


def main(argv: Optional[List[str]] = None,
         environ: Optional[Mapping[str, str]] = None) -> int:
    config, verbose = parse_config(argv, environ)
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    logger.debug(f"Starting with {config!r}")

    try:
        session = bootstrap(config)
    except DSError as e:
        _report_bootstrap_error(config, e)
        return 1

    printer = EventPrinter()
    try:
        subscription = printer.subscribe(session)
    except DSError as e:
        print(f"Could not subscribe to events: {e.message}")
        session.close()
        return 1

    print("Press CTRL C to exit....")
    try:
        printer.run(subscription)
    except KeyboardInterrupt:
        print("\nDisconnecting...")
        return 0
    finally:
        subscription.cancel()
        session.close()

    print("Event channel closed by the server.")
    return 1
