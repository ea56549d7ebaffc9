# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/


class RpcBackendError(Exception):
    pass


class ToolUnavailable(RpcBackendError):
    """Administrative CLI itself cannot be invoked. Retrying won't help."""


class CredentialOpFailed(RpcBackendError):
    pass


class UserEnsureFailed(CredentialOpFailed):
    pass


class ServiceControlFailed(RpcBackendError):
    pass


class SecondaryVHostFailed(RpcBackendError):
    pass


class ConfigFileError(RpcBackendError):
    """Config file of a consumer cannot be read or written."""


class AttemptsExhausted(RpcBackendError):

    def __init__(self, user_id: str, attempts: int):
        super().__init__(
            f"Credential provisioning failed after {attempts} attempts: "
            f"cannot set password for RabbitMQ user {user_id!r}")
        self.user_id = user_id
        self.attempts = attempts
