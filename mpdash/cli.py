"""
Command line entry point.
"""
import argparse
import sys

from . import __version__
from .app import Dashboard
from .client import Client
from .config import LOG_LEVELS, load_config, resolve_address, validate_config
from .logging_config import ConfigError, DaemonConnectionError, get_logger, setup_logging
from .terminal import PlayerTerminal

logger = get_logger('cli')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='mpdash',
        description='Terminal dashboard for the Music Player Daemon')
    parser.add_argument('-a', '--address', help='daemon address, host:port or socket path')
    parser.add_argument('-c', '--config', help='path to the config file')
    parser.add_argument('--jump-lines', type=int, help='rows moved by page up/down')
    parser.add_argument('--seek-secs', type=float, help='seconds moved by a seek')
    parser.add_argument('--ups', type=float, help='status refreshes per second')
    parser.add_argument('--cycle', action=argparse.BooleanOptionalAction, default=None,
                        help='wrap around when moving past either end of the queue')
    parser.add_argument('--clear-query-on-play', action=argparse.BooleanOptionalAction,
                        default=None, help='clear the search query when a song is played')
    parser.add_argument('-C', '--cmd', nargs='+', metavar='CMD',
                        help='send commands to the daemon, print the responses and exit')
    parser.add_argument('--log-file', help='write logs to this file')
    parser.add_argument('--log-level', type=str.upper, choices=LOG_LEVELS,
                        help='logging level')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def run_commands(client, commands):
    """Run each command line and print the response lines."""
    status = 0
    for command in commands:
        for line in client.run_line(command):
            print(line)
            if line.startswith('ACK '):
                status = 1
    return status


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
        config = validate_config(config.with_overrides(
            jump_lines=args.jump_lines,
            seek_secs=args.seek_secs,
            ups=args.ups,
            cycle=args.cycle,
            clear_query_on_play=args.clear_query_on_play,
            log_level=args.log_level,
            log_file=args.log_file,
        ))
    except ConfigError as e:
        print(f'mpdash: {e}', file=sys.stderr)
        return 1

    address = resolve_address(args.address, config.address)
    client = Client(address)

    if args.cmd:
        setup_logging(config.log_level, config.log_file, console=True)
        try:
            client.reconnect()
            return run_commands(client, args.cmd)
        except DaemonConnectionError as e:
            print(f'mpdash: {e}', file=sys.stderr)
            return 1
        finally:
            client.discard()

    setup_logging(config.log_level, config.log_file)
    logger.info(f'Starting dashboard for {address}')
    Dashboard(config, client, PlayerTerminal()).run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
