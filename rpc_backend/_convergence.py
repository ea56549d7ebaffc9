# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Bring broker credentials to the target state despite a flaky start.

RabbitMQ sometimes fails to start properly on the first try,
and its administrative interface may refuse commands for a while
after a restart. Both look the same from here: a command fails.
So a single bounded loop retries the whole cycle of restart and
credential setup, restarting the broker only on even attempts
to give it a settle cycle in between.

See: https://bugzilla.redhat.com/show_bug.cgi?id=1144100
See: https://bugs.launchpad.net/devstack/+bug/1449056
"""
import logging
from enum import Enum
from typing import List
from typing import NamedTuple
from typing import Optional

from rpc_backend._broker_service import BrokerService
from rpc_backend._credentials import CHILD_CELL_VHOST
from rpc_backend._credentials import BrokerCredential
from rpc_backend._errors import AttemptsExhausted
from rpc_backend._errors import CredentialOpFailed
from rpc_backend._errors import SecondaryVHostFailed
from rpc_backend._errors import ServiceControlFailed
from rpc_backend._rabbitmqctl import RabbitMQCtl

MAX_ATTEMPTS = 20


class ConvergenceState(Enum):
    STARTING = 'starting'
    CONFIGURING = 'configuring'
    CONVERGED = 'converged'
    EXHAUSTED = 'exhausted'


class ErrorKind(Enum):
    SERVICE_CONTROL_FAILED = 'service_control_failed'
    USER_ENSURE_FAILED = 'user_ensure_failed'
    PASSWORD_SET_FAILED = 'password_set_failed'


class AttemptState(NamedTuple):

    attempt_index: int
    last_error: Optional[ErrorKind] = None


class AttemptRecord(NamedTuple):

    attempt_index: int
    restarted: bool
    error: Optional[ErrorKind]


def should_restart(attempt_index: int) -> bool:
    """Restart on even attempts only.

    >>> [i for i in range(10) if should_restart(i)]
    [0, 2, 4, 6, 8]
    """
    return attempt_index % 2 == 0


class CredentialConvergence:

    def __init__(
            self,
            service: BrokerService,
            credential_store: RabbitMQCtl,
            credential: BrokerCredential,
            child_cell_enabled: bool = False,
            max_attempts: int = MAX_ATTEMPTS,
            ):
        if max_attempts < 1:
            raise ValueError(f"At least one attempt is required, got {max_attempts}")
        self._service = service
        self._store = credential_store
        self._credential = credential
        self._child_cell_enabled = child_cell_enabled
        self._max_attempts = max_attempts
        self._state = ConvergenceState.STARTING
        self._history: List[AttemptRecord] = []

    def __repr__(self):
        return f'<{self.__class__.__name__} {self._credential.user_id!r} {self._state.value}>'

    def state(self) -> ConvergenceState:
        return self._state

    def history(self) -> List[AttemptRecord]:
        return list(self._history)

    def run(self) -> AttemptState:
        """Converge or raise AttemptsExhausted.

        ToolUnavailable is not caught: a missing CLI stays missing.
        """
        self._history.clear()
        self._transition(ConvergenceState.STARTING)
        attempt = AttemptState(0)
        while attempt.attempt_index < self._max_attempts:
            error = self._attempt(attempt.attempt_index)
            if error is None:
                self._transition(ConvergenceState.CONVERGED)
                break
            attempt = AttemptState(attempt.attempt_index + 1, error)
        else:
            self._transition(ConvergenceState.EXHAUSTED)
            _logger.error(
                "Gave up on user %s after %d attempts, last error: %s",
                self._credential.user_id, self._max_attempts, attempt.last_error.value)
            raise AttemptsExhausted(self._credential.user_id, self._max_attempts)
        if self._child_cell_enabled:
            try:
                self._ensure_child_cell_vhost()
            except SecondaryVHostFailed as e:
                _logger.warning("Child cell is left without its vhost: %s", e)
        return attempt

    def _attempt(self, attempt_index: int) -> Optional[ErrorKind]:
        restarted = should_restart(attempt_index)
        error = self._configure(attempt_index, restarted)
        self._history.append(AttemptRecord(attempt_index, restarted, error))
        return error

    def _configure(self, attempt_index: int, restart: bool) -> Optional[ErrorKind]:
        user_id, password = self._credential
        _logger.info("Attempt %d of %d", attempt_index + 1, self._max_attempts)
        if restart:
            self._transition(ConvergenceState.STARTING)
            try:
                self._service.restart()
            except ServiceControlFailed as e:
                _logger.warning("Attempt %d: restart failed: %s", attempt_index + 1, e)
                return ErrorKind.SERVICE_CONTROL_FAILED
        self._transition(ConvergenceState.CONFIGURING)
        try:
            self._store.ensure_user(user_id, password)
        except CredentialOpFailed as e:
            _logger.warning("Attempt %d: user setup failed: %s", attempt_index + 1, e)
            return ErrorKind.USER_ENSURE_FAILED
        # User may be created while the default password is left in place.
        try:
            self._store.change_password(user_id, password)
        except CredentialOpFailed as e:
            _logger.warning("Attempt %d: password change failed: %s", attempt_index + 1, e)
            return ErrorKind.PASSWORD_SET_FAILED
        return None

    def _ensure_child_cell_vhost(self):
        try:
            self._store.ensure_vhost(CHILD_CELL_VHOST, self._credential.user_id)
        except CredentialOpFailed as e:
            raise SecondaryVHostFailed(f"Vhost {CHILD_CELL_VHOST!r}: {e}")

    def _transition(self, state: ConvergenceState):
        if state != self._state:
            _logger.info("%s: %s -> %s", self._credential.user_id, self._state.value, state.value)
            self._state = state


_logger = logging.getLogger(__name__)
