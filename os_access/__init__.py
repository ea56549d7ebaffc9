# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from os_access._command import Shell
from os_access._command import SudoShell
from os_access._exceptions import CommandNotFound
from os_access._exceptions import CommandNotPermitted
from os_access._exceptions import PackageManagerNotFound
from os_access._exceptions import ServiceNotFoundError
from os_access._exceptions import ServiceStartError
from os_access._exceptions import ServiceStatusError
from os_access._package_manager import Apt
from os_access._package_manager import Dnf
from os_access._package_manager import Zypper
from os_access._package_manager import detect_package_manager
from os_access._posix_shell import command_to_script
from os_access._posix_shell import masked
from os_access._processes import kill_all_by_name
from os_access._service_interface import PackageManager
from os_access._service_interface import Service
from os_access._service_interface import ServiceStatus
from os_access._ssh_shell import Ssh
from os_access._ssh_shell import SshNotConnected
from os_access._ssh_shell import parse_ssh_target
from os_access._systemd_service import SystemdService

__all__ = [
    'Apt',
    'CommandNotFound',
    'CommandNotPermitted',
    'Dnf',
    'PackageManager',
    'PackageManagerNotFound',
    'Service',
    'ServiceNotFoundError',
    'ServiceStartError',
    'ServiceStatus',
    'ServiceStatusError',
    'Shell',
    'Ssh',
    'SshNotConnected',
    'SudoShell',
    'SystemdService',
    'Zypper',
    'command_to_script',
    'detect_package_manager',
    'kill_all_by_name',
    'masked',
    'parse_ssh_target',
    ]
