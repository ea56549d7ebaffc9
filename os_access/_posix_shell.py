# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import os
import shlex
from typing import Sequence


def command_to_script(command):
    """Join arguments into a line that can be copied to a terminal.

    >>> command_to_script(['rabbitmqctl', 'set_permissions', 'u', '.*', '.*', '.*'])
    "rabbitmqctl set_permissions u '.*' '.*' '.*'"
    >>> command_to_script(['echo', True])
    Traceback (most recent call last):
    ...
    TypeError: Unsupported arg type True in command ['echo', True]
    """
    str_args = []
    for arg in command:
        if isinstance(arg, str):
            str_args.append(arg)
        elif isinstance(arg, int) and not isinstance(arg, bool):
            str_args.append(str(arg))
        elif isinstance(arg, os.PathLike):
            str_args.append(os.fspath(arg))
        else:
            raise TypeError(f"Unsupported arg type {arg} in command {command}")
    return shlex.join(str_args)


def masked(command: Sequence[str], secrets: Sequence[str]) -> str:
    """Render command for logs with arguments containing secrets hidden.

    >>> masked(['rabbitmqctl', 'add_user', 'u', "it's secret"], ["it's secret"])
    'rabbitmqctl add_user u ***'
    >>> masked(['rabbitmqctl', 'list_users'], [''])
    'rabbitmqctl list_users'
    """
    secrets = [s for s in secrets if s]
    parts = []
    for arg in command:
        if any(secret in str(arg) for secret in secrets):
            parts.append('***')
        else:
            parts.append(command_to_script([arg]))
    return ' '.join(parts)
