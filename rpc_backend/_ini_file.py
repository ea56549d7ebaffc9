# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import re
from abc import ABCMeta
from abc import abstractmethod
from pathlib import Path
from subprocess import CalledProcessError
from subprocess import TimeoutExpired

from os_access import CommandNotFound
from os_access import CommandNotPermitted
from os_access import Shell
from rpc_backend._errors import ConfigFileError


class IniFiles(metaclass=ABCMeta):
    """Set values in INI files of other services in place.

    Comments, order and unrelated values are preserved,
    so that the file stays familiar to people who edit it by hand.
    """

    def set_value(self, file: str, section: str, key: str, value: str):
        _logger.info("Set %s: [%s] %s", file, section, key)
        text = self._read(file)
        self._write(file, set_ini_value(text, section, key, value))

    @abstractmethod
    def _read(self, file: str) -> str:
        """Return empty string if file doesn't exist."""
        pass

    @abstractmethod
    def _write(self, file: str, text: str):
        pass


class LocalIniFiles(IniFiles):

    def __repr__(self):
        return f'<{self.__class__.__name__}>'

    def _read(self, file):
        try:
            return Path(file).read_text()
        except FileNotFoundError:
            return ''

    def _write(self, file, text):
        Path(file).write_text(text)


class ShellIniFiles(IniFiles):

    def __init__(self, shell: Shell):
        self._shell = shell

    def __repr__(self):
        return f'<{self.__class__.__name__} at {self._shell!r}>'

    def _read(self, file):
        result = self._shell_run(['cat', file], check=False)
        if result.returncode == 0:
            return result.stdout.decode()
        if b'No such file' in result.stderr:
            return ''
        stderr = result.stderr.decode(errors='backslashreplace').strip()
        raise ConfigFileError(f"Cannot read {file}: {stderr}")

    def _write(self, file, text):
        self._shell_run(['tee', file], input=text.encode())

    def _shell_run(self, command, **kwargs):
        try:
            return self._shell.run(command, **kwargs)
        except CalledProcessError as e:
            raise ConfigFileError(str(e))
        except TimeoutExpired as e:
            raise ConfigFileError(str(e))
        except CommandNotFound as e:
            raise ConfigFileError(str(e))
        except CommandNotPermitted as e:
            raise ConfigFileError(str(e))


_section_re = re.compile(r'^\s*\[(?P<name>[^]]+)]\s*$')


def set_ini_value(text: str, section: str, key: str, value: str) -> str:
    """Replace the value, add it to the section or add the section.

    >>> print(set_ini_value('[DEFAULT]\\n# Comment\\ndebug = False\\n', 'DEFAULT', 'debug', 'True'), end='')
    [DEFAULT]
    # Comment
    debug = True
    >>> print(set_ini_value('[a]\\nx = 1\\n\\n[b]\\ny = 2\\n', 'a', 'z', '3'), end='')
    [a]
    x = 1
    z = 3
    <BLANKLINE>
    [b]
    y = 2
    >>> print(set_ini_value('[a]\\nx = 1\\n', 'b', 'x', '2'), end='')
    [a]
    x = 1
    <BLANKLINE>
    [b]
    x = 2
    >>> print(set_ini_value('', 'DEFAULT', 'rpc_backend', 'rabbit'), end='')
    [DEFAULT]
    rpc_backend = rabbit
    >>> print(set_ini_value('[a]\\n# x = 0\\n', 'a', 'x', '1'), end='')
    [a]
    # x = 0
    x = 1
    >>> print(set_ini_value('[a]\\nx: 0\\nxy = 5\\n', 'a', 'x', '1'), end='')
    [a]
    x = 1
    xy = 5
    """
    lines = text.splitlines()
    key_re = re.compile(rf'^\s*{re.escape(key)}\s*[=:]')
    new_line = f'{key} = {value}'
    current_section = None
    insert_at = None
    for i, line in enumerate(lines):
        match = _section_re.match(line)
        if match is not None:
            current_section = match['name'].strip()
            if current_section == section:
                insert_at = i + 1
            continue
        if current_section != section:
            continue
        if key_re.match(line):
            lines[i] = new_line
            return _joined(lines)
        if line.strip():
            insert_at = i + 1
    if insert_at is None:
        if lines and lines[-1].strip():
            lines.append('')
        lines.extend([f'[{section}]', new_line])
    else:
        lines.insert(insert_at, new_line)
    return _joined(lines)


def _joined(lines):
    return '\n'.join(lines) + '\n'


_logger = logging.getLogger(__name__)
