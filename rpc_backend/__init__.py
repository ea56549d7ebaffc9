# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""RabbitMQ as the RPC backend of an environment.

The lifecycle is: cleanup, install, restart and configure, export config.
Configuring is the tricky part: the broker may have any users already,
and it is known to fail to start properly from time to time.
See rpc_backend._convergence.
"""
from rpc_backend._broker_service import BrokerService
from rpc_backend._convergence import MAX_ATTEMPTS
from rpc_backend._convergence import AttemptRecord
from rpc_backend._convergence import AttemptState
from rpc_backend._convergence import ConvergenceState
from rpc_backend._convergence import CredentialConvergence
from rpc_backend._convergence import ErrorKind
from rpc_backend._convergence import should_restart
from rpc_backend._credentials import CHILD_CELL_VHOST
from rpc_backend._credentials import BrokerCredential
from rpc_backend._credentials import PermissionGrant
from rpc_backend._credentials import full_permissions
from rpc_backend._descriptor import DEFAULT_PORT
from rpc_backend._descriptor import BackendSelection
from rpc_backend._descriptor import ConfigAssignment
from rpc_backend._descriptor import build_config_assignments
from rpc_backend._descriptor import build_transport_url
from rpc_backend._descriptor import transport_url_for
from rpc_backend._errors import AttemptsExhausted
from rpc_backend._errors import ConfigFileError
from rpc_backend._errors import CredentialOpFailed
from rpc_backend._errors import RpcBackendError
from rpc_backend._errors import SecondaryVHostFailed
from rpc_backend._errors import ServiceControlFailed
from rpc_backend._errors import ToolUnavailable
from rpc_backend._errors import UserEnsureFailed
from rpc_backend._ini_file import IniFiles
from rpc_backend._ini_file import LocalIniFiles
from rpc_backend._ini_file import ShellIniFiles
from rpc_backend._ini_file import set_ini_value
from rpc_backend._lifecycle import RabbitBackend
from rpc_backend._rabbitmqctl import RabbitMQCtl
from rpc_backend._settings import RabbitSettings
from rpc_backend._settings import read_config

__all__ = [
    'AttemptRecord',
    'AttemptState',
    'AttemptsExhausted',
    'BackendSelection',
    'BrokerCredential',
    'BrokerService',
    'CHILD_CELL_VHOST',
    'ConfigAssignment',
    'ConfigFileError',
    'ConvergenceState',
    'CredentialConvergence',
    'CredentialOpFailed',
    'DEFAULT_PORT',
    'ErrorKind',
    'IniFiles',
    'LocalIniFiles',
    'MAX_ATTEMPTS',
    'PermissionGrant',
    'RabbitBackend',
    'RabbitMQCtl',
    'RabbitSettings',
    'RpcBackendError',
    'SecondaryVHostFailed',
    'ServiceControlFailed',
    'ShellIniFiles',
    'ToolUnavailable',
    'UserEnsureFailed',
    'build_config_assignments',
    'build_transport_url',
    'full_permissions',
    'read_config',
    'set_ini_value',
    'should_restart',
    'transport_url_for',
    ]
