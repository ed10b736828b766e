import base64
import contextlib
import io
import os
import tempfile
import unittest
from unittest import mock

from Crypto.Random import get_random_bytes

from blockattack import cli
from blockattack.attack.xor.repeating_key import repeating_key_xor
from blockattack.modes import encrypt_ecb
from tests.test_xor import TEXT


def run(*argv):
    out = io.StringIO()
    with mock.patch("sys.argv", ["blockattack", *argv]), contextlib.redirect_stdout(out):
        cli.main()
    return out.getvalue()


class Test_CLI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, name, data):
        path = os.path.join(self.tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def test_parser(self):
        args = cli.build_argparser().parse_args(["demo", "padding", "-w", "4"])
        self.assertEqual((args.name, args.workers), ("padding", 4))
        args = cli.build_argparser().parse_args(["vaudenay", "alice"])
        self.assertEqual(args.url, "http://localhost:5000")

    def test_xor(self):
        key = b"Terminator X: Bring the noise"
        path = self.write("6.txt", base64.b64encode(repeating_key_xor(TEXT, key)))
        self.assertIn(repr(key), run("xor", path))

    def test_detect_ecb(self):
        block = get_random_bytes(16)
        lines = [get_random_bytes(48).hex(), encrypt_ecb(get_random_bytes(16), block * 3).hex()]
        path = self.write("8.txt", "\n".join(lines).encode())
        self.assertIn("Line 1 is ECB encrypted", run("detect-ecb", path))

    def test_demo(self):
        output = run("demo", "profile")
        self.assertIn("Admin ? True", output)
        output = run("demo", "bitflip")
        self.assertIn("Admin ? True", output)

    def test_missing_file(self):
        with self.assertRaises(SystemExit):
            run("xor", os.path.join(self.tmp.name, "missing.txt"))


if __name__ == "__main__":
    unittest.main()
