# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from typing import Mapping

from os_access._command import Shell
from os_access._exceptions import PackageManagerNotFound
from os_access._service_interface import PackageManager

_logger = logging.getLogger(__name__)

# Package operations may download a lot; rabbitmq-server pulls the whole Erlang.
_PACKAGE_TIMEOUT_SEC = 900


class Apt(PackageManager):

    def __init__(self, shell: Shell):
        self._shell = shell

    def __repr__(self):
        return f'<Apt at {self._shell!r}>'

    def install(self, packages):
        self._apt_get('install', '-y', *packages)

    def uninstall(self, packages):
        self._apt_get('remove', '-y', *packages)

    def purge(self, patterns):
        self._apt_get('purge', '-y', *patterns)

    def _apt_get(self, *args):
        self._shell.run(
            ['env', 'DEBIAN_FRONTEND=noninteractive', 'apt-get', '-q', *args],
            timeout_sec=_PACKAGE_TIMEOUT_SEC,
            )


class Dnf(PackageManager):

    def __init__(self, shell: Shell):
        self._shell = shell

    def __repr__(self):
        return f'<Dnf at {self._shell!r}>'

    def install(self, packages):
        self._shell.run(['dnf', 'install', '-y', *packages], timeout_sec=_PACKAGE_TIMEOUT_SEC)

    def uninstall(self, packages):
        self._shell.run(['dnf', 'remove', '-y', *packages], timeout_sec=_PACKAGE_TIMEOUT_SEC)

    def purge(self, patterns):
        # Dnf keeps no configuration of removed packages.
        self.uninstall(patterns)


class Zypper(PackageManager):

    def __init__(self, shell: Shell):
        self._shell = shell

    def __repr__(self):
        return f'<Zypper at {self._shell!r}>'

    def install(self, packages):
        self._zypper('install', *packages)

    def uninstall(self, packages):
        self._zypper('remove', *packages)

    def purge(self, patterns):
        self._zypper('remove', '--clean-deps', *patterns)

    def _zypper(self, *args):
        self._shell.run(
            ['zypper', '--non-interactive', *args],
            timeout_sec=_PACKAGE_TIMEOUT_SEC,
            )


def detect_package_manager(shell: Shell) -> PackageManager:
    os_release = shell.run(['cat', '/etc/os-release']).stdout.decode()
    family = os_family(parse_os_release(os_release))
    _logger.info("%r: OS family %s", shell, family)
    if family == 'debian':
        return Apt(shell)
    if family == 'fedora':
        return Dnf(shell)
    if family == 'suse':
        return Zypper(shell)
    raise PackageManagerNotFound(f"No package manager known for OS family {family!r}")


def parse_os_release(text: str) -> Mapping[str, str]:
    """Parse os-release(5) file.

    >>> parse_os_release('ID=ubuntu\\nID_LIKE=debian\\n# Comment\\nNAME="Ubuntu"\\n')
    {'ID': 'ubuntu', 'ID_LIKE': 'debian', 'NAME': 'Ubuntu'}
    """
    result = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        name, _, value = line.partition('=')
        result[name] = value.strip('"\'')
    return result


def os_family(os_release: Mapping[str, str]) -> str:
    """Choose the family by ID or the first known ID_LIKE.

    >>> os_family({'ID': 'rocky', 'ID_LIKE': 'rhel centos fedora'})
    'fedora'
    >>> os_family({'ID': 'opensuse-leap', 'ID_LIKE': 'suse opensuse'})
    'suse'
    >>> os_family({'ID': 'debian'})
    'debian'
    >>> os_family({'ID': 'alpine'})
    'alpine'
    """
    known = {
        'debian': 'debian',
        'ubuntu': 'debian',
        'fedora': 'fedora',
        'rhel': 'fedora',
        'centos': 'fedora',
        'suse': 'suse',
        'opensuse': 'suse',
        }
    candidates = [os_release.get('ID', ''), *os_release.get('ID_LIKE', '').split()]
    for candidate in candidates:
        if candidate in known:
            return known[candidate]
    return candidates[0]
