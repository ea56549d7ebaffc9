# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import unittest

from os_access import SudoShell
from rpc_backend import MAX_ATTEMPTS
from rpc_backend import AttemptsExhausted
from rpc_backend import BrokerCredential
from rpc_backend import ConvergenceState
from rpc_backend import CredentialConvergence
from rpc_backend import ErrorKind
from rpc_backend import RabbitMQCtl
from rpc_backend import ToolUnavailable
from rpc_backend.tests._fake_broker import FakeBrokerService
from rpc_backend.tests._fake_broker import ScriptedCredentialStore
from rpc_backend.tests._fake_shell import FakeBrokerHost

_credential = BrokerCredential('stackrabbit', 'secret')


class TestCredentialConvergence(unittest.TestCase):

    def test_converges_at_first_attempt(self):
        service = FakeBrokerService()
        store = ScriptedCredentialStore()
        convergence = CredentialConvergence(service, store, _credential)
        attempt = convergence.run()
        self.assertEqual(convergence.state(), ConvergenceState.CONVERGED)
        self.assertEqual(attempt.attempt_index, 0)
        self.assertIsNone(attempt.last_error)
        self.assertEqual(service.calls, ['restart'])
        self.assertEqual(store.calls, ['ensure_user', 'change_password'])

    def test_converges_after_failures_up_to_budget(self):
        for failures in [1, 2, 7, MAX_ATTEMPTS - 1]:
            with self.subTest(failures=failures):
                service = FakeBrokerService()
                store = ScriptedCredentialStore(user_failures=failures)
                convergence = CredentialConvergence(service, store, _credential)
                attempt = convergence.run()
                self.assertEqual(convergence.state(), ConvergenceState.CONVERGED)
                self.assertEqual(attempt.attempt_index, failures)
                self.assertEqual(attempt.last_error, ErrorKind.USER_ENSURE_FAILED)
                self.assertEqual(store.calls.count('ensure_user'), failures + 1)
                self.assertLessEqual(len(convergence.history()), MAX_ATTEMPTS)
                restarted_at = [r.attempt_index for r in convergence.history() if r.restarted]
                self.assertTrue(all(i % 2 == 0 for i in restarted_at))

    def test_exhausted(self):
        service = FakeBrokerService()
        store = ScriptedCredentialStore(user_failures=MAX_ATTEMPTS)
        convergence = CredentialConvergence(service, store, _credential)
        with self.assertRaises(AttemptsExhausted) as context:
            convergence.run()
        self.assertEqual(convergence.state(), ConvergenceState.EXHAUSTED)
        self.assertEqual(context.exception.attempts, MAX_ATTEMPTS)
        self.assertIn(f"after {MAX_ATTEMPTS} attempts", str(context.exception))
        self.assertEqual(store.calls.count('ensure_user'), MAX_ATTEMPTS)
        self.assertNotIn('change_password', store.calls)

    def test_restart_cadence(self):
        service = FakeBrokerService()
        store = ScriptedCredentialStore(user_failures=9)
        convergence = CredentialConvergence(service, store, _credential)
        convergence.run()
        history = convergence.history()
        self.assertEqual(len(history), 10)
        restarted_at = [r.attempt_index for r in history if r.restarted]
        self.assertEqual(restarted_at, [0, 2, 4, 6, 8])
        self.assertEqual(service.calls.count('restart'), 5)

    def test_password_set_failure_is_retried(self):
        service = FakeBrokerService()
        store = ScriptedCredentialStore(password_failures=2)
        convergence = CredentialConvergence(service, store, _credential)
        attempt = convergence.run()
        self.assertEqual(attempt.attempt_index, 2)
        self.assertEqual(attempt.last_error, ErrorKind.PASSWORD_SET_FAILED)
        self.assertEqual(store.calls, ['ensure_user', 'change_password'] * 3)

    def test_restart_failure_is_retried(self):
        service = FakeBrokerService(restart_failures=1)
        store = ScriptedCredentialStore()
        convergence = CredentialConvergence(service, store, _credential)
        attempt = convergence.run()
        self.assertEqual(attempt.attempt_index, 1)
        self.assertEqual(attempt.last_error, ErrorKind.SERVICE_CONTROL_FAILED)
        # Attempt 1 is odd, so it goes straight to configuring.
        self.assertEqual(service.calls, ['restart'])
        self.assertEqual(store.calls, ['ensure_user', 'change_password'])

    def test_persistent_restart_failure_exhausts(self):
        service = FakeBrokerService(restart_failures=MAX_ATTEMPTS)
        store = ScriptedCredentialStore(user_failures=MAX_ATTEMPTS)
        convergence = CredentialConvergence(service, store, _credential)
        with self.assertRaises(AttemptsExhausted):
            convergence.run()
        errors = {r.error for r in convergence.history()}
        self.assertEqual(errors, {ErrorKind.SERVICE_CONTROL_FAILED, ErrorKind.USER_ENSURE_FAILED})

    def test_tool_unavailable_is_not_retried(self):
        service = FakeBrokerService()
        store = ScriptedCredentialStore(tool_missing=True)
        convergence = CredentialConvergence(service, store, _credential)
        with self.assertRaises(ToolUnavailable):
            convergence.run()
        self.assertEqual(store.calls, ['ensure_user'])
        self.assertNotEqual(convergence.state(), ConvergenceState.CONVERGED)

    def test_sudo_refusal_is_not_retried(self):
        host = FakeBrokerHost()
        host.sudo_password_required = True
        service = FakeBrokerService()
        convergence = CredentialConvergence(service, RabbitMQCtl(SudoShell(host)), _credential)
        with self.assertRaises(ToolUnavailable):
            convergence.run()
        self.assertEqual(host.commands, [['sudo', '-n', 'rabbitmqctl', 'list_users']])
        self.assertEqual(service.calls, ['restart'])
        self.assertEqual(convergence.history(), [])

    def test_child_cell_vhost(self):
        store = ScriptedCredentialStore()
        convergence = CredentialConvergence(
            FakeBrokerService(), store, _credential, child_cell_enabled=True)
        convergence.run()
        self.assertIn('child_cell', store.vhosts)
        self.assertEqual(store.calls[-1], 'ensure_vhost')

    def test_child_cell_vhost_not_requested(self):
        store = ScriptedCredentialStore()
        CredentialConvergence(FakeBrokerService(), store, _credential).run()
        self.assertNotIn('ensure_vhost', store.calls)

    def test_child_cell_vhost_failure_is_not_fatal(self):
        store = ScriptedCredentialStore(vhost_failure=True)
        convergence = CredentialConvergence(
            FakeBrokerService(), store, _credential, child_cell_enabled=True)
        with self.assertLogs('rpc_backend._convergence', logging.WARNING) as logs:
            convergence.run()
        self.assertEqual(convergence.state(), ConvergenceState.CONVERGED)
        self.assertTrue(any('child_cell' in line for line in logs.output))
        self.assertEqual(store.calls.count('ensure_vhost'), 1)

    def test_custom_budget(self):
        store = ScriptedCredentialStore(user_failures=3)
        convergence = CredentialConvergence(FakeBrokerService(), store, _credential, max_attempts=3)
        with self.assertRaises(AttemptsExhausted) as context:
            convergence.run()
        self.assertEqual(context.exception.attempts, 3)
        with self.assertRaises(ValueError):
            CredentialConvergence(FakeBrokerService(), store, _credential, max_attempts=0)

    def test_password_not_in_logs(self):
        store = ScriptedCredentialStore(user_failures=MAX_ATTEMPTS)
        convergence = CredentialConvergence(FakeBrokerService(), store, _credential)
        with self.assertLogs('rpc_backend', logging.DEBUG) as logs:
            with self.assertRaises(AttemptsExhausted):
                convergence.run()
        self.assertFalse(any(_credential.password in line for line in logs.output))


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)7s %(name)s %(message).5000s",
        )
    unittest.main()
