import unittest
from urllib.parse import urlsplit

import requests
from Crypto.Random import get_random_bytes

from blockattack.attack.aes.cbc.bitflip import (ADMIN_MARKER, CommentService, find_input_offset,
                                                forge_admin)
from blockattack.attack.aes.cbc.server_padding_oracle import PaddingOracle, create_app
from blockattack.attack.aes.cbc.vaudenay_attack import (RemotePaddingOracle, attack_block,
                                                        vaudenay_attack)
from blockattack.modes import MisalignedInputError


class Test_Bitflip(unittest.TestCase):

    def test_escaped_input_is_not_admin(self):
        service = CommentService()
        self.assertFalse(service.is_admin(service.encrypt(ADMIN_MARKER)))

    def test_input_offset(self):
        self.assertEqual(find_input_offset(CommentService().encrypt), 32)
        self.assertEqual(find_input_offset(CommentService(prefix=b"user=").encrypt), 5)
        self.assertEqual(find_input_offset(CommentService(prefix=b"").encrypt), 0)

    def test_forge_admin(self):
        service = CommentService()
        self.assertTrue(service.is_admin(forge_admin(service.encrypt)))

    def test_forge_admin_unaligned_prefix(self):
        for prefix in (b"", b"user=", b"comment1=cooking MCs;data="):
            service = CommentService(prefix=prefix)
            self.assertTrue(service.is_admin(forge_admin(service.encrypt)), prefix)

    def test_payload_too_long(self):
        service = CommentService()
        with self.assertRaises(ValueError):
            forge_admin(service.encrypt, target=b";admin=true;role=admin;")

    def test_misaligned_ciphertext_is_not_admin(self):
        service = CommentService()
        forged = forge_admin(service.encrypt)
        self.assertFalse(service.is_admin(forged[:-1]))
        self.assertFalse(service.is_admin(b""))


class CountingOracle:

    def __init__(self, oracle):
        self.oracle = oracle
        self.calls = 0

    def __call__(self, ciphertext):
        self.calls += 1
        return self.oracle(ciphertext)


class Test_PaddingOracle(unittest.TestCase):

    def test_oracle_answers(self):
        oracle = PaddingOracle()
        ct = oracle.encrypt(b"attack at dawn")
        self.assertTrue(oracle(ct))
        self.assertFalse(oracle(ct[:-1]))
        self.assertFalse(oracle(ct[:16]))

        # "attack at dawn" ends in \x02\x02; the IV controls the only block
        tampered = bytearray(ct)
        tampered[15] ^= 0x02 ^ 0x05
        self.assertFalse(oracle(bytes(tampered)))
        tampered = bytearray(ct)
        tampered[15] ^= 0x02 ^ 0x01
        self.assertTrue(oracle(bytes(tampered)))

    def test_fresh_iv(self):
        oracle = PaddingOracle()
        self.assertNotEqual(oracle.encrypt(b"same"), oracle.encrypt(b"same"))


class Test_VaudenayAttack(unittest.TestCase):

    MESSAGES = (
        b"",
        b"a",
        b"YELLOW SUBMARINE",
        b"Congratulations! Here is your flag: FLAG{f4k3_f0r_t3st1ng}",
        b"ends with bytes that look like padding\x02\x02",
        b"fifteen bytes\x01\x01",
        bytes(range(256)),
    )

    def test_recover_plaintext(self):
        for message in self.MESSAGES:
            oracle = PaddingOracle()
            self.assertEqual(vaudenay_attack(oracle, oracle.encrypt(message)), message)

    def test_call_bound(self):
        oracle = PaddingOracle()
        message = b"Congratulations! Here is your flag: FLAG{f4k3_f0r_t3st1ng}"
        ct = oracle.encrypt(message)
        counting = CountingOracle(oracle)
        self.assertEqual(vaudenay_attack(counting, ct), message)
        blocks = len(ct) // 16 - 1
        self.assertLessEqual(counting.calls, 256 * 16 * blocks)

    def test_workers(self):
        oracle = PaddingOracle()
        message = b"parallel candidate probes"
        self.assertEqual(vaudenay_attack(oracle, oracle.encrypt(message), workers=8), message)

    def test_single_block(self):
        oracle = PaddingOracle()
        ct = oracle.encrypt(b"0123456789abcdef")
        self.assertEqual(attack_block(oracle, ct[:16], ct[:16], ct[16:32]), b"0123456789abcdef")

    def test_misaligned_input(self):
        oracle = PaddingOracle()
        with self.assertRaises(MisalignedInputError):
            vaudenay_attack(oracle, get_random_bytes(16))
        with self.assertRaises(MisalignedInputError):
            vaudenay_attack(oracle, get_random_bytes(40))


class FlaskResponse:

    def __init__(self, response):
        self.response = response

    def raise_for_status(self):
        if self.response.status_code >= 400:
            raise requests.HTTPError(f"{self.response.status_code} error")

    def json(self):
        return self.response.get_json()


class FlaskSession:
    """Routes requests-style post() calls into a Flask test client."""

    def __init__(self, client):
        self.client = client

    def post(self, url, json=None):
        return FlaskResponse(self.client.post(urlsplit(url).path, json=json))


class Test_RemotePaddingOracle(unittest.TestCase):

    MESSAGE = b"remote secret"

    def setUp(self):
        self.app = create_app(lambda username: self.MESSAGE)
        self.client = self.app.test_client()

    def test_status(self):
        response = self.client.get("/status")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["service"], "CBC Padding Oracle")

    def test_encrypt_requires_username(self):
        self.assertEqual(self.client.post("/api/encrypt", json={}).status_code, 400)
        self.assertEqual(self.client.post("/api/encrypt", json={"username": ""}).status_code, 400)

    def test_verify_requires_known_user(self):
        response = self.client.post("/api/verify_padding",
                                    json={"username": "nobody", "iv": "", "ciphertext": ""})
        self.assertEqual(response.status_code, 400)
        response = self.client.post("/api/verify_padding", json={"username": "nobody"})
        self.assertEqual(response.status_code, 400)

    def test_remote_oracle(self):
        remote = RemotePaddingOracle("alice", "http://testserver", session=FlaskSession(self.client))
        ct = remote.fetch()
        self.assertEqual(len(ct), 32)
        self.assertTrue(remote(ct))
        self.assertFalse(remote(ct[:-1]))

    def test_unknown_user_raises(self):
        remote = RemotePaddingOracle("mallory", "http://testserver", session=FlaskSession(self.client))
        with self.assertRaises(requests.HTTPError):
            remote(get_random_bytes(32))

    def test_attack_over_http(self):
        remote = RemotePaddingOracle("alice", "http://testserver", session=FlaskSession(self.client))
        self.assertEqual(vaudenay_attack(remote, remote.fetch()), self.MESSAGE)


if __name__ == "__main__":
    unittest.main()
