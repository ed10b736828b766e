import unittest

from Crypto.Random import get_random_bytes

from blockattack.padding import is_valid, pad, unpad


class Test_PKCS7(unittest.TestCase):

    def test_pad(self):
        self.assertEqual(pad(b"YELLOW SUBMARINE", 20), b"YELLOW SUBMARINE\x04\x04\x04\x04")
        self.assertEqual(pad(b"YELLOW SUBMARINE", 16), b"YELLOW SUBMARINE" + b"\x10" * 16)

    def test_unpad(self):
        self.assertEqual(unpad(b"ICE ICE BABY\x04\x04\x04\x04", 16), b"ICE ICE BABY")

    def test_invalid_padding_is_none(self):
        self.assertIsNone(unpad(b"ICE ICE BABY\x05\x05\x05\x05", 16))
        self.assertIsNone(unpad(b"ICE ICE BABY\x01\x02\x03\x04", 16))
        self.assertIsNone(unpad(b"ICE ICE BABY1234", 16))
        self.assertIsNone(unpad(b"A" * 15 + b"\x00", 16))
        self.assertIsNone(unpad(b"A" * 15 + b"\x11", 16))
        self.assertIsNone(unpad(b"", 16))
        self.assertIsNone(unpad(b"\x01" * 15, 16))

    def test_is_valid(self):
        self.assertTrue(is_valid(b"A" * 15 + b"\x01"))
        self.assertFalse(is_valid(b"A" * 16))

    def test_idempotence(self):
        for block_size in (8, 16, 32):
            for length in range(3 * block_size + 1):
                data = get_random_bytes(length)
                padded = pad(data, block_size)
                self.assertEqual(len(padded) % block_size, 0)
                self.assertGreater(len(padded), len(data))
                self.assertEqual(unpad(padded, block_size), data)


if __name__ == "__main__":
    unittest.main()
