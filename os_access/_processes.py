# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from subprocess import CalledProcessError
from typing import Optional

from os_access._command import Shell

_logger = logging.getLogger(__name__)


def kill_all_by_name(shell: Shell, executable_name: str, signal: Optional[str] = None) -> bool:
    """Kill processes by name; return whether any was found.

    Killall exits with 1 when no process matched, that is not an error here.
    """
    command = ['killall']
    if signal is not None:
        command.append(f'-{signal}')
    command.append(executable_name)
    try:
        shell.run(command)
    except CalledProcessError as e:
        if e.returncode != 1:
            raise
        _logger.debug("No %s process found", executable_name)
        return False
    return True
