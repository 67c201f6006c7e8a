#!/usr/bin/env python3
"""
Relay Group Messaging Server - Main Entry Point

Usage:
    python main_server.py

Optional arguments:
    --host HOST           Bind address (default: 0.0.0.0)
    --port PORT           TCP port (default: 9000)
    --users-file PATH     User directory JSON file (default: users.json)
    --invite-code CODE    Registration invite code (default: $RELAY_INVITE_CODE)
    --logs-dir DIR        Directory for the chat transcript (default: logs)
    --debug               Enable debug logging
"""

import argparse
import asyncio
import logging

from common.constants import DEFAULT_SERVER_HOST, DEFAULT_PORT, USERS_FILE, LOG_DIR
from server.main_server import RelayServer
from server.utils.config import ServerConfig
from server.utils.logger import logger


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Relay Group Messaging Server')
    parser.add_argument('--host', type=str, default=DEFAULT_SERVER_HOST,
                        help=f'Host to bind to (default: {DEFAULT_SERVER_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'TCP port (default: {DEFAULT_PORT})')
    parser.add_argument('--users-file', type=str, default=USERS_FILE,
                        help=f'User directory file (default: {USERS_FILE})')
    parser.add_argument('--invite-code', type=str, default=None,
                        help='Registration invite code (default: $RELAY_INVITE_CODE)')
    parser.add_argument('--logs-dir', type=str, default=LOG_DIR,
                        help=f'Directory for log files (default: {LOG_DIR})')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.debug:
        logger.set_level(logging.DEBUG)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        users_file=args.users_file,
        invite_code=args.invite_code,
        logs_dir=args.logs_dir
    )

    try:
        server = RelayServer(config)
        logger.info(f"Server binding to {config.host}:{config.port}")
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except Exception as e:
        logger.log_error("server", e)
        raise


if __name__ == "__main__":
    main()
