# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from abc import ABCMeta
from abc import abstractmethod
from subprocess import CalledProcessError
from subprocess import CompletedProcess
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

from os_access._exceptions import CommandNotFound
from os_access._exceptions import CommandNotPermitted
from os_access._posix_shell import masked

_logger = logging.getLogger(__name__)

_DEFAULT_RUN_TIMEOUT_SEC = 60

# In Python "bytes" in a type annotation denotes any of the following.
# But PyCharm doesn't respect memoryview.
_Bytes = Union[bytes, bytearray, memoryview]

# Exit statuses of POSIX shells when a command cannot be found or executed.
_NOT_EXECUTABLE = 126
_NOT_FOUND = 127

# Messages of sudo refusing to run a command, whatever the command does.
_sudo_refusals = (
    "a password is required",
    "is not allowed to execute",
    "is not in the sudoers file",
    "a terminal is required",
    )


class _CalledProcessError(CalledProcessError):

    def __init__(self, returncode, cmd, output=None, stderr=None, secrets=()):
        super().__init__(returncode, cmd, output, stderr)
        self._secrets = secrets

    def __str__(self):
        stderr = self.stderr.decode(errors='backslashreplace')[:5000]
        if self.returncode is None:
            result = "no exit status"
        else:
            result = f"exit status {self.returncode} (0x{self.returncode:x})"
        return f"Command {masked(self.cmd, self._secrets)} died with {result}: {stderr}"


class Shell(metaclass=ABCMeta):
    """Run a command to completion and collect its output.

    Commands are sequences of arguments, never shell scripts:
    what is logged is exactly what is executed, except for secrets.
    """

    def run(
            self,
            args: Sequence[str],
            input: Optional[_Bytes] = None,  # noqa PyShadowingBuiltins
            timeout_sec: float = _DEFAULT_RUN_TIMEOUT_SEC,
            check=True,
            secrets: Sequence[str] = (),
            ) -> CompletedProcess:
        args = [str(arg) for arg in args]
        _logger.info("Run on %r: %s", self, masked(args, secrets))
        returncode, stdout, stderr = self._run(args, input, timeout_sec)
        _logger.debug("%r: exit status %d", self, returncode)
        return _completed(args, returncode, stdout, stderr, check, secrets)

    @abstractmethod
    def _run(
            self,
            args: Sequence[str],
            input: Optional[_Bytes],  # noqa PyShadowingBuiltins
            timeout_sec: float,
            ) -> Tuple[int, bytes, bytes]:
        pass

    @abstractmethod
    def close(self):
        pass


class SudoShell(Shell):
    """Prefix every command with non-interactive sudo.

    Sudo reports a missing executable and its own refusal with exit status 1,
    the message is recognized to tell them from a failure of the command.
    """

    def __init__(self, shell: Shell):
        self._shell = shell

    def __repr__(self):
        return f'<Sudo on {self._shell!r}>'

    def run(self, args, input=None, timeout_sec=_DEFAULT_RUN_TIMEOUT_SEC, check=True, secrets=()):  # noqa PyShadowingBuiltins
        args = [str(arg) for arg in args]
        result = self._shell.run(
            ['sudo', '-n', *args],
            input=input,
            timeout_sec=timeout_sec,
            check=False,
            secrets=secrets,
            )
        if result.returncode == 1 and result.stderr.startswith(b'sudo:'):
            stderr = result.stderr.decode(errors='backslashreplace')
            if 'command not found' in stderr:
                raise CommandNotFound(args, stderr)
            if any(refusal in stderr for refusal in _sudo_refusals):
                raise CommandNotPermitted(args, stderr)
        return _completed(args, result.returncode, result.stdout, result.stderr, check, secrets)

    def _run(self, args, input, timeout_sec):  # noqa PyShadowingBuiltins
        result = self.run(args, input=input, timeout_sec=timeout_sec, check=False)
        return result.returncode, result.stdout, result.stderr

    def close(self):
        self._shell.close()


def _completed(args, returncode, stdout, stderr, check, secrets) -> CompletedProcess:
    if returncode in (_NOT_EXECUTABLE, _NOT_FOUND):
        raise CommandNotFound(args, stderr.decode(errors='backslashreplace'))
    if check and returncode != 0:
        raise _CalledProcessError(returncode, args, stdout, stderr, secrets)
    return CompletedProcess(args, returncode, stdout, stderr)
