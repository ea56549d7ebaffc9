# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import doctest
import unittest

from rpc_backend import _convergence
from rpc_backend import _descriptor
from rpc_backend import _ini_file
from rpc_backend import _rabbitmqctl
from rpc_backend import _settings
from rpc_backend import provision


class TestDocstrings(unittest.TestCase):

    def _check(self, module):
        result = doctest.testmod(module)
        self.assertGreater(result.attempted, 0)
        self.assertEqual(result.failed, 0)

    def test_convergence(self):
        self._check(_convergence)

    def test_descriptor(self):
        self._check(_descriptor)

    def test_ini_file(self):
        self._check(_ini_file)

    def test_rabbitmqctl(self):
        self._check(_rabbitmqctl)

    def test_settings(self):
        self._check(_settings)

    def test_provision(self):
        self._check(provision)


if __name__ == '__main__':
    unittest.main()
