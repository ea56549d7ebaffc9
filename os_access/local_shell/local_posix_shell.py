# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import subprocess

from os_access._command import Shell
from os_access._exceptions import CommandNotFound
from os_access._exceptions import CommandNotPermitted

_logger = logging.getLogger(__name__)


class _LocalPosixShell(Shell):

    def __repr__(self):
        return '<LocalShell>'

    def _run(self, args, input, timeout_sec):  # noqa PyShadowingBuiltins
        try:
            process = subprocess.run(
                args,
                input=input,
                # It may hang waiting for input when no input is actually needed.
                stdin=subprocess.DEVNULL if input is None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                close_fds=True,
                timeout=timeout_sec,
                )
        except FileNotFoundError as e:
            raise CommandNotFound(args, e.strerror)
        except PermissionError as e:
            raise CommandNotPermitted(args, e.strerror)
        return process.returncode, process.stdout, process.stderr

    def close(self):
        """Explicitly do nothing to close local shell."""
        pass


local_posix_shell = _LocalPosixShell()
