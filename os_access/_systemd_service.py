# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from subprocess import CalledProcessError

from os_access._command import Shell
from os_access._exceptions import ServiceNotFoundError
from os_access._exceptions import ServiceStartError
from os_access._exceptions import ServiceStatusError
from os_access._service_interface import Service
from os_access._service_interface import ServiceStatus

_logger = logging.getLogger(__name__)


class SystemdService(Service):
    """Restart a Systemd unit and tell its state from `systemctl show`."""

    _default_timeout_sec = 60

    def __init__(self, shell: Shell, name: str):
        self._shell = shell
        self._name = name

    def __repr__(self):
        return '<SystemdService {} at {!r}>'.format(self._name, self._shell)

    def restart(self, timeout_sec=None):
        _logger.info("Restart service %s.", self._name)
        self._systemctl('restart', timeout_sec)

    def _systemctl(self, verb, timeout_sec):
        if timeout_sec is None:
            timeout_sec = self._default_timeout_sec
        try:
            self._shell.run(['systemctl', verb, self._name], timeout_sec=timeout_sec)
        except CalledProcessError as e:
            stdout = e.stdout.decode('ascii', errors='backslashreplace')
            stderr = e.stderr.decode('ascii', errors='backslashreplace')
            raise ServiceStartError(
                f"Service {self._name} failed to {verb} with error code {e.returncode}:\n"
                f"stdout: {stdout}\n"
                f"stderr: {stderr}")

    def status(self):
        result = self._shell.run([
            'systemctl', 'show', '-p', 'SubState,MainPID,LoadState', self._name])
        try:
            data = dict(line.split('=', 1) for line in result.stdout.decode('ascii').splitlines())
        except ValueError:
            raise ServiceStatusError(f"Unexpected output of systemctl show: {result.stdout!r}")
        if data.get('LoadState') == 'not-found':
            raise ServiceNotFoundError(f"Service {self._name!r} not found")
        try:
            return ServiceStatus(
                data['SubState'] == 'running',
                data['SubState'] in ['dead', 'failed'],
                int(data['MainPID']))
        except (KeyError, ValueError):
            raise ServiceStatusError(f"Unexpected output of systemctl show: {result.stdout!r}")
