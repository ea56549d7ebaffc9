# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import fnmatch
import logging
import socket
from configparser import ConfigParser
from pathlib import Path
from typing import Mapping
from typing import NamedTuple
from typing import Optional
from typing import Sequence

from rpc_backend._credentials import BrokerCredential
from rpc_backend._descriptor import BackendSelection

_logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = (
    Path('/etc/rpc_backend.ini'),
    Path('~/.config/rpc_backend.ini').expanduser(),
    )


def read_config(*paths: Path, host: Optional[str] = None) -> Mapping[str, str]:
    """Read and resolve overrides according to versions.

    Sections are host masks, like "[broker-??.local]", or "[defaults]".
    Optionally add ";v123" to sections like "[broker-??;v45]".
    If not specified, "v0" is assumed.
    Higher versions override lower versions,
    later files override earlier files of the same version.
    """
    if host is None:
        host = socket.gethostname()
    config_parts = []
    for path_i, path in enumerate(paths):
        config_parser = ConfigParser(interpolation=None)
        config_parser.read(path)
        sections = config_parser.sections()
        for section_i, section in enumerate(sections):
            mask, version = _parse_section_header(section)
            if fnmatch.fnmatch(host, mask):
                _logger.info("Config %s: section %s: read", path, section)
                items = config_parser.items(section)
                config_parts.append((version, path_i, section_i, items))
            else:
                _logger.debug("Config %s: section %s: skip", path, section)
    config_parts.sort(key=lambda part: part[:3])
    config = {}
    for _version, _path_i, _section_i, items in config_parts:
        config.update(items)
    return config


def _parse_section_header(section):
    """Split section header into host mask and version.

    >>> _parse_section_header('defaults')
    ('*', 0)
    >>> _parse_section_header('broker-??;v3')
    ('broker-??', 3)
    >>> _parse_section_header('broker;x')
    Traceback (most recent call last):
    ...
    ValueError: Unknown x in broker;x
    """
    if section == 'defaults':
        return '*', 0
    else:
        mask, semicolon, extra = section.partition(';')
        if not extra:
            return mask, 0
        elif extra.startswith('v'):
            try:
                return mask, int(extra[1:])
            except ValueError:
                raise ValueError(f"Cannot parse {extra} in {section}")
        else:
            raise ValueError(f"Unknown {extra} in {section}")


class RabbitSettings(NamedTuple):

    enabled_services: Sequence[str] = ()
    user_id: str = 'stackrabbit'
    password: str = ''
    host: str = ''
    heartbeat_timeout_threshold: Optional[int] = None
    heartbeat_rate: Optional[int] = None
    service_name: str = 'rabbitmq-server'
    package: str = 'rabbitmq-server'
    rabbitmqctl: str = 'rabbitmqctl'

    def __repr__(self):
        return (
            f'<{RabbitSettings.__name__} '
            f'user={self.user_id!r} host={self.host!r} '
            f'services={",".join(self.enabled_services)!r}>')

    @classmethod
    def from_mapping(cls, config: Mapping[str, str]) -> 'RabbitSettings':
        """Build settings from a flat mapping of config values.

        >>> s = RabbitSettings.from_mapping({'enabled_services': 'key, rabbit,n-cell', 'rabbit_heartbeat_rate': '2'})
        >>> s.enabled_services, s.heartbeat_rate, s.heartbeat_timeout_threshold
        (('key', 'rabbit', 'n-cell'), 2, None)
        >>> RabbitSettings.from_mapping({'rabbit_heartbeat_rate': 'often'})
        Traceback (most recent call last):
        ...
        ValueError: rabbit_heartbeat_rate must be an integer, got 'often'
        """
        defaults = cls()
        services = config.get('enabled_services', '')
        return cls(
            enabled_services=tuple(s.strip() for s in services.split(',') if s.strip()),
            user_id=config.get('rabbit_userid', defaults.user_id),
            password=config.get('rabbit_password', defaults.password),
            host=config.get('rabbit_host', defaults.host),
            heartbeat_timeout_threshold=_optional_int(config, 'rabbit_heartbeat_timeout_threshold'),
            heartbeat_rate=_optional_int(config, 'rabbit_heartbeat_rate'),
            service_name=config.get('rabbit_service', defaults.service_name),
            package=config.get('rabbit_package', defaults.package),
            rabbitmqctl=config.get('rabbitmqctl', defaults.rabbitmqctl),
            )

    def is_service_enabled(self, name: str) -> bool:
        return name in self.enabled_services

    def selection(self) -> BackendSelection:
        return BackendSelection(self.is_service_enabled('rabbit'), self.host, self.password)

    def credential(self) -> BrokerCredential:
        return BrokerCredential(self.user_id, self.password)

    def child_cell_enabled(self) -> bool:
        return self.is_service_enabled('n-cell')


def _optional_int(config: Mapping[str, str], key: str) -> Optional[int]:
    value = config.get(key, '').strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}")
