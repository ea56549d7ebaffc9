# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from typing import NamedTuple

UNRESTRICTED = '.*'
DEFAULT_VHOST = '/'
CHILD_CELL_VHOST = 'child_cell'


class BrokerCredential(NamedTuple):

    user_id: str
    password: str

    def __repr__(self):
        return f'{BrokerCredential.__name__}({self.user_id!r}, ***)'


class PermissionGrant(NamedTuple):

    user_id: str
    configure: str
    write: str
    read: str
    vhost: str = DEFAULT_VHOST


def full_permissions(user_id: str, vhost: str = DEFAULT_VHOST) -> PermissionGrant:
    return PermissionGrant(user_id, UNRESTRICTED, UNRESTRICTED, UNRESTRICTED, vhost)
