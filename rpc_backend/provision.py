# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Provision RabbitMQ as the RPC backend of a host.

Actions mirror the steps of an environment bring-up and may be run
one by one or all at once with "bring-up":

    python -m rpc_backend.provision install --ssh stack@10.0.0.5
    python -m rpc_backend.provision restart --ssh stack@10.0.0.5
    python -m rpc_backend.provision export-config --file /etc/nova/nova.conf

Every action does nothing if "rabbit" is not among enabled services.
Values come from /etc/rpc_backend.ini, ~/.config/rpc_backend.ini
and files given with --config, see rpc_backend._settings.
"""
import configparser
import logging
import socket
import sys
from argparse import ArgumentParser
from pathlib import Path
from typing import Sequence
from typing import Tuple

from os_access import Shell
from os_access import Ssh
from os_access import SshNotConnected
from os_access import SudoShell
from os_access import SystemdService
from os_access import parse_ssh_target
from os_access.local_shell import local_shell
from rpc_backend._broker_service import BrokerService
from rpc_backend._errors import RpcBackendError
from rpc_backend._ini_file import ShellIniFiles
from rpc_backend._lifecycle import RabbitBackend
from rpc_backend._rabbitmqctl import RabbitMQCtl
from rpc_backend._settings import DEFAULT_CONFIG_PATHS
from rpc_backend._settings import RabbitSettings
from rpc_backend._settings import read_config

_actions = ['cleanup', 'install', 'restart', 'export-config', 'transport-url', 'bring-up']


def main(args: Sequence[str]) -> int:
    parser = ArgumentParser(description="provision RabbitMQ as the RPC backend")
    parser.add_argument('action', choices=_actions)
    parser.add_argument('--ssh', metavar='USER@HOST[:PORT]', help=(
        "run commands on a remote host; "
        "default: run locally"))
    parser.add_argument('--key', type=Path, help=(
        "private key for SSH; "
        "default: SSH agent and default keys"))
    parser.add_argument('--config', type=Path, action='append', default=[], help=(
        "extra INI file with settings; may be repeated; "
        "later files override earlier ones"))
    parser.add_argument('--file', action='append', default=[], metavar='PATH[:SECTION]', help=(
        "consumer config file to point at the broker; may be repeated; "
        "section defaults to DEFAULT"))
    parser.add_argument('--no-sudo', action='store_true', help=(
        "run commands as is, e.g. when connected as root"))
    parsed = parser.parse_args(args)
    if parsed.ssh is not None:
        try:
            username, hostname, port = parse_ssh_target(parsed.ssh)
        except ValueError as e:
            parser.error(str(e))
    else:
        hostname = socket.gethostname()
    try:
        config = read_config(*DEFAULT_CONFIG_PATHS, *parsed.config, host=hostname)
        settings = RabbitSettings.from_mapping(config)
    except ValueError as e:
        _logger.critical("Invalid settings: %s", e)
        return 1
    except configparser.Error as e:
        _logger.critical("Invalid settings: %s", e)
        return 1
    _logger.info("Settings: %r", settings)
    if parsed.ssh is not None:
        try:
            key = parsed.key.read_text() if parsed.key is not None else None
        except OSError as e:
            _logger.critical("Cannot read SSH key: %s", e)
            return 1
        shell: Shell = Ssh(hostname, port, username, key)
    else:
        shell = local_shell
    if not parsed.no_sudo:
        shell = SudoShell(shell)
    try:
        return _run_action(parsed.action, shell, settings, hostname, _parse_files(parsed.file))
    except RpcBackendError as e:
        _logger.critical("%s: %s", parsed.action, e)
        return 1
    except SshNotConnected as e:
        _logger.critical("%s: %s", parsed.action, e)
        return 1
    finally:
        shell.close()


def _run_action(action, shell: Shell, settings: RabbitSettings, hostname: str, files):
    backend = _make_backend(shell, settings, hostname)
    if action == 'transport-url':
        url = backend.transport_url()
        if url is not None:
            print(url)
    elif action == 'cleanup':
        backend.cleanup()
    elif action == 'install':
        backend.install()
    elif action == 'restart':
        backend.restart_and_configure()
    elif action == 'export-config':
        for file, section in files:
            backend.export_config(file, section)
    elif action == 'bring-up':
        backend.bring_up(files)
    else:
        raise RuntimeError(f"Unexpected action {action!r}")
    return 0


def _make_backend(shell: Shell, settings: RabbitSettings, hostname: str) -> RabbitBackend:
    service = BrokerService(
        shell,
        None,
        SystemdService(shell, settings.service_name),
        package=settings.package,
        )
    return RabbitBackend(
        settings,
        service,
        RabbitMQCtl(shell, settings.rabbitmqctl),
        ShellIniFiles(shell),
        default_host=hostname,
        )


def _parse_files(values: Sequence[str]) -> Sequence[Tuple[str, str]]:
    """Split PATH[:SECTION] values.

    >>> _parse_files(['/etc/nova/nova.conf', '/etc/cinder/cinder.conf:oslo'])
    [('/etc/nova/nova.conf', 'DEFAULT'), ('/etc/cinder/cinder.conf', 'oslo')]
    """
    result = []
    for value in values:
        path, _, section = value.partition(':')
        result.append((path, section or 'DEFAULT'))
    return result


_logger = logging.getLogger(__name__)


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)7s %(name)s %(message).5000s",
        )
    exit(main(sys.argv[1:]))
