"""
Main entry point untuk global ref-db tooling.
"""

import argparse
import logging
import sys

from .core.exceptions import GlobalRefDbError
from .core.models import RefKey
from .provisioning import BootstrapProvisioner
from .refdb import build_ref_database, create_redis_client, create_stores
from .utils.config import Config

ABSENT = '-'


def setup_logging(config: Config):
    """Setup logging configuration"""
    handlers = [logging.StreamHandler(sys.stderr)]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE))
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='globalrefdb',
        description='Global ref database shared by multiple servers'
    )
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('provision', help='Create lock and refs tables if missing')

    for name, help_text in (('get', 'Print the shared value of a ref'),
                            ('exists', 'Check whether a ref has a shared record')):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument('owner')
        cmd.add_argument('ref')

    check = sub.add_parser('check', help='Check whether a local value is up to date')
    check.add_argument('owner')
    check.add_argument('ref')
    check.add_argument('value')

    put = sub.add_parser('put', help='Lock the ref and compare-and-put a new value')
    put.add_argument('owner')
    put.add_argument('ref')
    put.add_argument('expected', help=f"Expected value, '{ABSENT}' for absent")
    put.add_argument('new')

    return parser


def run(args: argparse.Namespace, config: Config) -> int:
    """
    Run satu command.

    Returns:
        Exit status
    """
    client = create_redis_client(config)
    store, lock_service = create_stores(config, client)

    if args.command == 'provision':
        return 0 if BootstrapProvisioner(store, config).start() else 1

    refdb = build_ref_database(config, store, lock_service)
    key = RefKey(args.owner, args.ref)

    if args.command == 'get':
        value = refdb.get(key)
        if value is None:
            return 1
        print(value)
    elif args.command == 'exists':
        exists = refdb.exists(key)
        print('true' if exists else 'false')
        return 0 if exists else 1
    elif args.command == 'check':
        up_to_date = refdb.is_up_to_date(key, args.value)
        print('up-to-date' if up_to_date else 'stale')
        return 0 if up_to_date else 1
    elif args.command == 'put':
        expected = None if args.expected == ABSENT else args.expected
        refdb.update_ref(key, expected, args.new)
        print(f"{key.path} -> {args.new}")
    return 0


def main(argv=None):
    """Main entry point"""
    args = build_parser().parse_args(argv)

    config = Config()
    setup_logging(config)

    try:
        sys.exit(run(args, config))
    except GlobalRefDbError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
