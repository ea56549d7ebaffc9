# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from subprocess import CalledProcessError
from subprocess import TimeoutExpired
from typing import Collection
from typing import Sequence
from typing import Set

from os_access import CommandNotFound
from os_access import CommandNotPermitted
from os_access import Shell
from rpc_backend._credentials import DEFAULT_VHOST
from rpc_backend._credentials import PermissionGrant
from rpc_backend._credentials import full_permissions
from rpc_backend._errors import CredentialOpFailed
from rpc_backend._errors import ToolUnavailable
from rpc_backend._errors import UserEnsureFailed


class RabbitMQCtl:
    """Users, permissions and vhosts of a broker via its administrative CLI.

    Every mutating call is an upsert or is preceded by a lookup,
    so the whole set of operations may be repeated safely.
    The broker serializes concurrent changes, nothing is locked here.
    """

    # A node which is still booting may keep the CLI waiting.
    _timeout_sec = 60

    def __init__(self, shell: Shell, executable: str = 'rabbitmqctl'):
        self._shell = shell
        self._executable = executable

    def __repr__(self):
        return f'<{self.__class__.__name__} {self._executable} at {self._shell!r}>'

    def list_users(self) -> Set[str]:
        output = self._ctl(['list_users'])
        return set(parse_first_column(output, header=['user', 'tags']))

    def list_vhosts(self) -> Set[str]:
        output = self._ctl(['list_vhosts'])
        return set(parse_first_column(output, header=['name']))

    def add_user(self, user_id: str, password: str):
        self._ctl(['add_user', user_id, password], secrets=[password])

    def change_password(self, user_id: str, password: str):
        self._ctl(['change_password', user_id, password], secrets=[password])

    def set_permissions(self, grant: PermissionGrant):
        self._ctl([
            'set_permissions', '-p', grant.vhost, grant.user_id,
            grant.configure, grant.write, grant.read,
            ])

    def add_vhost(self, name: str):
        self._ctl(['add_vhost', name])

    def ensure_user(self, user_id: str, password: str):
        try:
            users = self.list_users()
        except CredentialOpFailed as e:
            raise UserEnsureFailed(f"Failed to list users: {e}")
        try:
            if user_id in users:
                _logger.info("User %s exists, change its password", user_id)
                self.change_password(user_id, password)
            else:
                _logger.info("User %s does not exist, add it", user_id)
                self.add_user(user_id, password)
        except CredentialOpFailed as e:
            raise UserEnsureFailed(f"Failed to set password for {user_id!r}: {e}")
        self.grant_full_permissions(user_id)

    def grant_full_permissions(self, user_id: str, vhost: str = DEFAULT_VHOST):
        self.set_permissions(full_permissions(user_id, vhost))

    def ensure_vhost(self, name: str, user_id: str):
        if name in self.list_vhosts():
            _logger.info("Vhost %s exists", name)
        else:
            self.add_vhost(name)
        self.grant_full_permissions(user_id, name)

    def _ctl(self, args: Sequence[str], secrets: Collection[str] = ()) -> str:
        command = [self._executable, *args]
        try:
            result = self._shell.run(command, timeout_sec=self._timeout_sec, secrets=secrets)
        except CommandNotFound as e:
            raise ToolUnavailable(f"{self._executable} cannot be invoked: {e}")
        except CommandNotPermitted as e:
            raise ToolUnavailable(f"{self._executable} cannot be invoked: {e}")
        except CalledProcessError as e:
            raise CredentialOpFailed(f"{self._executable} {args[0]} failed: {e}")
        except TimeoutExpired:
            raise CredentialOpFailed(
                f"{self._executable} {args[0]} timed out after {self._timeout_sec} seconds")
        return result.stdout.decode(errors='backslashreplace')


def parse_first_column(output: str, header: Sequence[str]) -> Sequence[str]:
    """Take identities from the tabular output of the CLI.

    Informational lines of old and new CLI versions are skipped.
    The table header is skipped only when it is the first row.

    >>> old = 'Listing users ...\\nguest\\t[administrator]\\nstack\\t[]\\n...done.\\n'
    >>> parse_first_column(old, ['user', 'tags'])
    ['guest', 'stack']
    >>> new = 'Listing users ...\\nuser\\ttags\\nguest\\t[administrator]\\n'
    >>> parse_first_column(new, ['user', 'tags'])
    ['guest']
    >>> parse_first_column('Listing vhosts ...\\nname\\n/\\nchild_cell\\n', ['name'])
    ['/', 'child_cell']
    >>> parse_first_column('', ['name'])
    []
    """
    rows = []
    for line in output.splitlines():
        if line.startswith('Listing ') and line.endswith('...'):
            continue
        if line.strip() == '...done.':
            continue
        columns = line.split()
        if not columns:
            continue
        rows.append(columns)
    if rows and rows[0] == list(header):
        rows = rows[1:]
    return [columns[0] for columns in rows]


_logger = logging.getLogger(__name__)
