#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import asyncio
import logging

from yeelight_discovery.internal_types import *

from yeelight_discovery import (
    __version__ as pkg_version,
    YeeClient,
    MULTICAST_ADDRESS,
    MULTICAST_PORT,
    DEFAULT_LOCAL_PORT,
    DEFAULT_DISCOVERY_TIMEOUT,
  )

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    async def cmd_search(self) -> int:
        wait_time: float = self._args.wait_time
        async with YeeClient(
                multicast_address=self._args.multicast_address,
                multicast_port=self._args.multicast_port,
                local_port=self._args.local_port,
              ) as client:
            devices = await client.discover(wait_time)
        for device in devices:
            print(json.dumps(device.to_jsonable(), indent=2, sort_keys=True))
        sys.stdout.flush()
        return 0

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the yeelight-discovery command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(prog="yeelight-discovery", description="Discover Yeelight smart lights on the local network.")


        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')


        # ======================= search

        parser_search = subparsers.add_parser('search', description="Search for Yeelight devices")
        parser_search.add_argument('--wait-time', type=float, default=DEFAULT_DISCOVERY_TIMEOUT,
                            help=f'''The amount of time to wait for responses, in seconds. Default: {DEFAULT_DISCOVERY_TIMEOUT}''')
        parser_search.add_argument('--local-port', type=int, default=DEFAULT_LOCAL_PORT,
                            help=f'''The local UDP port to receive responses on. Default: {DEFAULT_LOCAL_PORT}''')
        parser_search.add_argument('--multicast-address', default=MULTICAST_ADDRESS,
                            help=f'''The multicast address to send the query to. Default: {MULTICAST_ADDRESS}''')
        parser_search.add_argument('--multicast-port', type=int, default=MULTICAST_PORT,
                            help=f'''The multicast port to send the query to. Default: {MULTICAST_PORT}''')
        parser_search.set_defaults(func=self.cmd_search)

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            logging.basicConfig(
                level=logging.getLevelName(args.log_level.upper()),
            )
            self._args = args
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            print(f"yeelight-discovery: error: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"yeelight-discovery: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            rc = loop.run_until_complete(self.arun())
        finally:
            loop.close()
        return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    sys.exit(run())
