# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from typing import Optional
from typing import Sequence
from typing import Tuple

from rpc_backend._broker_service import BrokerService
from rpc_backend._convergence import ConvergenceState
from rpc_backend._convergence import CredentialConvergence
from rpc_backend._descriptor import build_config_assignments
from rpc_backend._descriptor import transport_url_for
from rpc_backend._errors import AttemptsExhausted
from rpc_backend._errors import RpcBackendError
from rpc_backend._ini_file import IniFiles
from rpc_backend._rabbitmqctl import RabbitMQCtl
from rpc_backend._settings import RabbitSettings


class RabbitBackend:
    """Lifecycle of RabbitMQ as the RPC backend of an environment.

    Every operation may be called whatever backend is chosen:
    when RabbitMQ is not the one, it does nothing.
    Consumers may still be pointed at an external RabbitMQ
    if its host and password are given explicitly.
    """

    def __init__(
            self,
            settings: RabbitSettings,
            service: BrokerService,
            credential_store: RabbitMQCtl,
            ini_files: IniFiles,
            default_host: str = 'localhost',
            ):
        self._settings = settings
        self._selection = settings.selection()
        self._service = service
        self._credential_store = credential_store
        self._ini_files = ini_files
        self._default_host = default_host
        self._convergence: Optional[CredentialConvergence] = None

    def __repr__(self):
        return f'<{self.__class__.__name__} {self._selection!r}>'

    def is_selected(self) -> bool:
        return self._selection.is_selected()

    def cleanup(self):
        if not self._selection.is_selected():
            _logger.info("RabbitMQ is not enabled, nothing to clean up")
            return
        self._service.uninstall()
        self._service.purge_runtime()

    def install(self):
        if not self._selection.is_selected():
            _logger.info("RabbitMQ is not enabled, nothing to install")
            return
        self._service.install()

    def restart_and_configure(self):
        if not self._selection.is_selected():
            _logger.info("RabbitMQ is not enabled, nothing to configure")
            return
        _logger.info("Starting RabbitMQ")
        self._convergence = CredentialConvergence(
            self._service,
            self._credential_store,
            self._settings.credential(),
            child_cell_enabled=self._settings.child_cell_enabled(),
            )
        self._convergence.run()

    def transport_url(self) -> Optional[str]:
        return transport_url_for(self._selection, self._settings.user_id, self._default_host)

    def export_config(self, file: str, section: str = 'DEFAULT'):
        if not self._selection.is_exported():
            _logger.info("RabbitMQ is neither enabled nor given, %s is left intact", file)
            return
        if self._convergence is not None:
            state = self._convergence.state()
            if state == ConvergenceState.EXHAUSTED:
                raise AttemptsExhausted(self._settings.user_id, len(self._convergence.history()))
            if state != ConvergenceState.CONVERGED:
                raise RpcBackendError(f"RabbitMQ configuration is incomplete: {state.value}")
        assignments = build_config_assignments(
            file,
            section,
            self._settings.user_id,
            self._selection.host or self._default_host,
            self._settings.password,
            heartbeat_timeout_threshold=self._settings.heartbeat_timeout_threshold,
            heartbeat_rate=self._settings.heartbeat_rate,
            )
        for assignment in assignments:
            self._ini_files.set_value(*assignment)

    def bring_up(self, config_files: Sequence[Tuple[str, str]]):
        """Install, start, configure and point consumers at the broker.

        Nothing is written to consumer configs if credentials didn't converge.
        """
        self.install()
        self.restart_and_configure()
        for file, section in config_files:
            self.export_config(file, section)


_logger = logging.getLogger(__name__)
