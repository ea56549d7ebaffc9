# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from subprocess import CalledProcessError
from subprocess import TimeoutExpired
from typing import Callable
from typing import Optional
from typing import TypeVar

from os_access import Apt
from os_access import CommandNotFound
from os_access import CommandNotPermitted
from os_access import PackageManager
from os_access import PackageManagerNotFound
from os_access import Service
from os_access import ServiceNotFoundError
from os_access import ServiceStartError
from os_access import ServiceStatusError
from os_access import Shell
from os_access import SystemdService
from os_access import Zypper
from os_access import detect_package_manager
from os_access import kill_all_by_name
from rpc_backend._errors import ServiceControlFailed

# Erlang port mapper daemon outlives the broker and keeps its node name.
_RUNTIME_HELPER = 'epmd'

_T = TypeVar('_T')


class BrokerService:
    """Install, remove and restart the broker and its Erlang runtime.

    Package manager is detected on first use if not given.
    Failures of the underlying OS tools are reported as ServiceControlFailed.
    """

    def __init__(
            self,
            shell: Shell,
            package_manager: Optional[PackageManager],
            service: Service,
            package: str = 'rabbitmq-server',
            ):
        self._shell = shell
        self._package_manager = package_manager
        self._service = service
        self._package = package

    def __repr__(self):
        return f'<{self.__class__.__name__} {self._package} at {self._shell!r}>'

    def install(self):
        _logger.info("Install %s", self._package)
        packages = self._control(self._packages)
        self._control(lambda: packages.install([self._package]))
        if isinstance(packages, Zypper):
            # Management plugins are packaged separately and epmd must be
            # started by hand on SUSE.
            self._control(lambda: packages.install([f'{self._package}-plugins']))
            self._control(SystemdService(self._shell, _RUNTIME_HELPER).restart)

    def uninstall(self):
        _logger.info("Uninstall %s", self._package)
        packages = self._control(self._packages)
        self._control(lambda: packages.uninstall([self._package]))
        self._stop_runtime_helper()

    def restart(self):
        self._control(self._service.restart)
        # Systemd may report success for a unit which dies right after start.
        if self._control(self._service.is_stopped):
            raise ServiceControlFailed(f"{self._service!r} is stopped right after restart")

    def purge_runtime(self):
        packages = self._control(self._packages)
        if isinstance(packages, Apt):
            _logger.info("Purge Erlang runtime")
            self._control(lambda: packages.purge(['erlang*']))
        else:
            _logger.info("Erlang runtime is removed along with %s", self._package)

    def _packages(self) -> PackageManager:
        if self._package_manager is None:
            self._package_manager = detect_package_manager(self._shell)
        return self._package_manager

    def _stop_runtime_helper(self):
        # A stuck epmd may ignore SIGTERM.
        for signal in [None, 'KILL']:
            try:
                kill_all_by_name(self._shell, _RUNTIME_HELPER, signal=signal)
            except CommandNotFound as e:
                _logger.warning("Cannot stop %s: %s", _RUNTIME_HELPER, e)
                return
            except CommandNotPermitted as e:
                _logger.warning("Cannot stop %s: %s", _RUNTIME_HELPER, e)
                return
            except TimeoutExpired as e:
                _logger.warning("Cannot stop %s: %s", _RUNTIME_HELPER, e)
            except CalledProcessError as e:
                _logger.warning("Cannot stop %s: %s", _RUNTIME_HELPER, e)
            else:
                return

    @staticmethod
    def _control(action: Callable[[], _T]) -> _T:
        try:
            return action()
        except ServiceStartError as e:
            raise ServiceControlFailed(str(e))
        except ServiceNotFoundError as e:
            raise ServiceControlFailed(str(e))
        except ServiceStatusError as e:
            raise ServiceControlFailed(str(e))
        except PackageManagerNotFound as e:
            raise ServiceControlFailed(str(e))
        except CalledProcessError as e:
            raise ServiceControlFailed(str(e))
        except TimeoutExpired as e:
            raise ServiceControlFailed(str(e))
        except CommandNotFound as e:
            raise ServiceControlFailed(str(e))
        except CommandNotPermitted as e:
            raise ServiceControlFailed(str(e))


_logger = logging.getLogger(__name__)
