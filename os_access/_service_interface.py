# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from abc import ABCMeta
from abc import abstractmethod
from typing import NamedTuple
from typing import Optional
from typing import Sequence


class Service(metaclass=ABCMeta):

    @abstractmethod
    def restart(self, timeout_sec: Optional[float] = None):
        pass

    @abstractmethod
    def status(self) -> 'ServiceStatus':
        pass

    def is_stopped(self):
        """Shortcut."""
        return self.status().is_stopped


class ServiceStatus(NamedTuple):

    is_running: bool
    is_stopped: bool
    pid: int  # 0 means no process.


class PackageManager(metaclass=ABCMeta):

    @abstractmethod
    def install(self, packages: Sequence[str]):
        pass

    @abstractmethod
    def uninstall(self, packages: Sequence[str]):
        pass

    @abstractmethod
    def purge(self, patterns: Sequence[str]):
        """Remove packages together with configuration, patterns are allowed."""
        pass
