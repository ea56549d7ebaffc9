# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from typing import Sequence


class CommandNotFound(Exception):
    """Executable is absent or cannot be executed on the target machine."""

    def __init__(self, args: Sequence[str], details: str = ''):
        message = f"Cannot execute {args[0]!r}"
        if details:
            message += f": {details.strip()}"
        super().__init__(message)
        self.command = list(args)


class ServiceNotFoundError(Exception):
    pass


class ServiceStartError(Exception):
    pass


class ServiceStatusError(Exception):
    pass


class PackageManagerNotFound(Exception):
    pass


class CommandNotPermitted(Exception):
    """Executable exists but the current user may not run it."""

    def __init__(self, args: Sequence[str], details: str = ''):
        message = f"Not permitted to execute {args[0]!r}"
        if details:
            message += f": {details.strip()}"
        super().__init__(message)
        self.command = list(args)
