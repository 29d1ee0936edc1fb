# Copyright 2026 gRPC authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests of cryptobroker_cli._parser."""

import argparse
import contextlib
import io
import logging
import unittest

from cryptobroker_cli import _parser
from cryptobroker_cli._records import CertEncoding

_SIGN_ARGS = (
    "sign",
    "--csr",
    "req.csr",
    "--caCert",
    "ca.crt",
    "--caKey",
    "ca.key",
)


class ParserTest(unittest.TestCase):
    def _assert_usage_error(self, argv):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as context:
                _parser.parse_invocation(argv)
        self.assertEqual(2, context.exception.code)
        self.assertIn("usage:", stderr.getvalue())
        return stderr.getvalue()

    def test_hash_defaults(self):
        invocation = _parser.parse_invocation(["hash", "hello"])
        self.assertEqual(_parser.HASH, invocation.command)
        self.assertEqual("Default", invocation.profile)
        self.assertIsNone(invocation.delay)
        self.assertEqual("hello", invocation.data)
        self.assertFalse(invocation.data_only)

    def test_hash_data_only(self):
        invocation = _parser.parse_invocation(["hash", "--data-only", "x"])
        self.assertTrue(invocation.data_only)

    def test_global_options(self):
        invocation = _parser.parse_invocation(
            ["--profile", "PQC", "--loop", "250", "health"]
        )
        self.assertEqual(_parser.HEALTH, invocation.command)
        self.assertEqual("PQC", invocation.profile)
        self.assertEqual(250, invocation.delay)

    def test_loop_bounds(self):
        for delay in (1, 2, 500, 999, 1000):
            invocation = _parser.parse_invocation(
                ["--loop", str(delay), "benchmark"]
            )
            self.assertEqual(delay, invocation.delay)
        for delay in ("0", "-1", "1001", "100000"):
            stderr = self._assert_usage_error(["--loop", delay, "benchmark"])
            self.assertIn("between 1ms and 1000ms", stderr)

    def test_loop_not_a_number(self):
        for delay in ("abc", "1.5", ""):
            self._assert_usage_error(["--loop", delay, "health"])

    def test_delay_arg(self):
        self.assertEqual(1000, _parser.delay_arg("1000"))
        with self.assertRaises(argparse.ArgumentTypeError):
            _parser.delay_arg("0")
        with self.assertRaises(argparse.ArgumentTypeError):
            _parser.delay_arg("ten")

    def test_missing_command(self):
        self._assert_usage_error([])
        self._assert_usage_error(["--profile", "Default"])

    def test_unknown_command(self):
        self._assert_usage_error(["encrypt"])

    def test_sign(self):
        invocation = _parser.parse_invocation(list(_SIGN_ARGS))
        self.assertEqual(_parser.SIGN, invocation.command)
        self.assertEqual("req.csr", invocation.csr)
        self.assertEqual("ca.crt", invocation.ca_cert)
        self.assertEqual("ca.key", invocation.ca_key)
        self.assertIs(CertEncoding.PEM, invocation.encoding)
        self.assertIsNone(invocation.subject)

    def test_sign_options(self):
        invocation = _parser.parse_invocation(
            list(_SIGN_ARGS)
            + ["--encoding", "B64", "--subject", "CN=example.com"]
        )
        self.assertIs(CertEncoding.B64, invocation.encoding)
        self.assertEqual("CN=example.com", invocation.subject)

    def test_sign_invalid_encoding(self):
        self._assert_usage_error(list(_SIGN_ARGS) + ["--encoding", "DER"])

    def test_sign_missing_required(self):
        for missing in ("--csr", "--caCert", "--caKey"):
            index = _SIGN_ARGS.index(missing)
            argv = list(_SIGN_ARGS[:index] + _SIGN_ARGS[index + 2 :])
            stderr = self._assert_usage_error(argv)
            self.assertIn(missing, stderr)

    def test_invocation_is_immutable(self):
        invocation = _parser.parse_invocation(["health"])
        with self.assertRaises(AttributeError):
            invocation.profile = "Other"


if __name__ == "__main__":
    logging.basicConfig()
    unittest.main(verbosity=2)
