# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import tempfile
import unittest
from configparser import ConfigParser
from pathlib import Path

from rpc_backend import ConfigFileError
from rpc_backend import LocalIniFiles
from rpc_backend import ShellIniFiles
from rpc_backend import set_ini_value
from rpc_backend.tests._fake_shell import FakeBrokerHost

_nova_conf = """\
[DEFAULT]
# Keep it verbose.
debug = True

[oslo_messaging_rabbit]
rabbit_hosts = old.host
"""


class TestSetIniValue(unittest.TestCase):

    def test_replace(self):
        text = set_ini_value(_nova_conf, 'oslo_messaging_rabbit', 'rabbit_hosts', '10.0.0.5')
        self.assertIn('rabbit_hosts = 10.0.0.5\n', text)
        self.assertNotIn('old.host', text)
        self.assertIn('# Keep it verbose.\n', text)

    def test_add_to_section(self):
        text = set_ini_value(_nova_conf, 'DEFAULT', 'rpc_backend', 'rabbit')
        parser = ConfigParser()
        parser.read_string(text)
        self.assertEqual(parser['DEFAULT']['rpc_backend'], 'rabbit')
        self.assertEqual(parser['DEFAULT']['debug'], 'True')
        self.assertLess(text.index('rpc_backend'), text.index('[oslo_messaging_rabbit]'))

    def test_add_section(self):
        text = set_ini_value(_nova_conf, 'cells', 'enable', 'True')
        parser = ConfigParser()
        parser.read_string(text)
        self.assertEqual(parser['cells']['enable'], 'True')
        self.assertEqual(parser['oslo_messaging_rabbit']['rabbit_hosts'], 'old.host')

    def test_same_key_other_section(self):
        text = set_ini_value(_nova_conf, 'DEFAULT', 'rabbit_hosts', '10.0.0.5')
        parser = ConfigParser()
        parser.read_string(text)
        self.assertEqual(parser['DEFAULT']['rabbit_hosts'], '10.0.0.5')
        self.assertEqual(parser['oslo_messaging_rabbit']['rabbit_hosts'], 'old.host')

    def test_replace_colon_form(self):
        text = '[oslo_messaging_rabbit]\nrabbit_hosts: old.host\n'
        text = set_ini_value(text, 'oslo_messaging_rabbit', 'rabbit_hosts', '10.0.0.5')
        self.assertEqual(text, '[oslo_messaging_rabbit]\nrabbit_hosts = 10.0.0.5\n')

    def test_repeated(self):
        once = set_ini_value(_nova_conf, 'DEFAULT', 'rpc_backend', 'rabbit')
        twice = set_ini_value(once, 'DEFAULT', 'rpc_backend', 'rabbit')
        self.assertEqual(once, twice)


class TestIniFiles(unittest.TestCase):

    def test_local(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / 'nova.conf'
            files = LocalIniFiles()
            files.set_value(str(path), 'DEFAULT', 'rpc_backend', 'rabbit')
            files.set_value(str(path), 'oslo_messaging_rabbit', 'rabbit_userid', 'stackrabbit')
            parser = ConfigParser()
            parser.read(path)
            self.assertEqual(parser['DEFAULT']['rpc_backend'], 'rabbit')
            self.assertEqual(parser['oslo_messaging_rabbit']['rabbit_userid'], 'stackrabbit')

    def test_shell(self):
        host = FakeBrokerHost()
        host.files['/etc/nova/nova.conf'] = _nova_conf
        files = ShellIniFiles(host)
        files.set_value('/etc/nova/nova.conf', 'oslo_messaging_rabbit', 'rabbit_hosts', '10.0.0.5')
        files.set_value('/etc/cinder/cinder.conf', 'DEFAULT', 'rpc_backend', 'rabbit')
        self.assertIn('rabbit_hosts = 10.0.0.5\n', host.files['/etc/nova/nova.conf'])
        self.assertEqual(host.files['/etc/cinder/cinder.conf'], '[DEFAULT]\nrpc_backend = rabbit\n')

    def test_shell_read_failure(self):
        host = FakeBrokerHost()
        host.broken.add('cat')
        with self.assertRaises(ConfigFileError):
            ShellIniFiles(host).set_value('/etc/nova/nova.conf', 'DEFAULT', 'rpc_backend', 'rabbit')

    def test_shell_write_failure(self):
        host = FakeBrokerHost()
        host.broken.add('tee')
        with self.assertRaises(ConfigFileError):
            ShellIniFiles(host).set_value('/etc/nova/nova.conf', 'DEFAULT', 'rpc_backend', 'rabbit')
        self.assertNotIn('/etc/nova/nova.conf', host.files)


if __name__ == '__main__':
    unittest.main()
