#!/usr/bin/env python3
"""
AES-128 ECB profile forgery

A service hands out AES-ECB(pad(profile)) tokens where
  profile = "email=<email>&role=user&uid=10"
and grants admin rights to any token whose role field reads "admin".

Principle:
  1. In ECB each 16-byte block encrypts independently, so ciphertext blocks
     can be cut from one token and pasted into another.
  2. Pick an email length that makes "email=...&role=" end exactly on a
     block boundary and keep those blocks.
  3. Register a second email that puts "admin" + PKCS#7 padding alone in a
     block and take that block.
  4. prefix blocks + admin block decrypts to "email=...&role=admin" with
     valid padding. The key is never needed.

Usage: python3 -m blockattack.attack.aes.ecb.token_forgery
"""

from typing import Callable, Dict

from Crypto.Random import get_random_bytes

from blockattack.modes import BLOCK_SIZE, decrypt_ecb, encrypt_ecb
from blockattack.padding import pad, unpad

EMAIL_FIELD = "email="
ROLE_FIELD = "&role="
DEFAULT_UID = 10


def profile_for(email: str, role: str = "user", uid: int = DEFAULT_UID) -> bytes:
    """Encode a profile; '&' and '=' are eaten from the email."""
    email = email.replace("&", "").replace("=", "")
    return f"{EMAIL_FIELD}{email}{ROLE_FIELD}{role}&uid={uid}".encode()


def parse_profile(data: bytes) -> Dict[str, str]:
    """Parse k=v&k=v; the first occurrence of a key wins."""
    record = {}
    for field in data.decode(errors="replace").split("&"):
        key, _, value = field.partition("=")
        record.setdefault(key, value)
    return record


class ProfileService:
    """Issues encrypted profiles and checks them; the key never leaves."""

    def __init__(self):
        self.__key = get_random_bytes(16)

    def encrypt(self, email: str) -> bytes:
        return encrypt_ecb(self.__key, pad(profile_for(email), BLOCK_SIZE))

    def decrypt(self, token: bytes) -> Dict[str, str]:
        plaintext = unpad(decrypt_ecb(self.__key, token), BLOCK_SIZE)
        if plaintext is None:
            return {}
        return parse_profile(plaintext)

    def is_admin(self, token: bytes) -> bool:
        if len(token) == 0 or len(token) % BLOCK_SIZE != 0:
            return False
        return self.decrypt(token).get("role") == "admin"


def forge_admin_profile(oracle: Callable[[str], bytes], block_size: int = BLOCK_SIZE) -> bytes:
    """Cut and paste two tokens into one whose role is admin."""
    bs = block_size

    # "email=" + n * "A" + "&role=" ends on a block boundary
    n = -(len(EMAIL_FIELD) + len(ROLE_FIELD)) % bs
    head_length = len(EMAIL_FIELD) + n + len(ROLE_FIELD)
    head = oracle("A" * n)[:head_length]

    # "email=" + filler fills a block, the email's tail is "admin" + padding
    filler = "A" * (-len(EMAIL_FIELD) % bs)
    index = (len(EMAIL_FIELD) + len(filler)) // bs
    admin_email = filler + pad(b"admin", bs).decode()
    admin_block = oracle(admin_email)[index * bs:(index + 1) * bs]

    return head + admin_block


if __name__ == "__main__":
    print("AES-128 ECB profile forgery\n")

    service = ProfileService()
    token = service.encrypt("foo@bar.com")
    print("Honest token  :", token.hex())
    print("Honest profile:", service.decrypt(token))

    forged = forge_admin_profile(service.encrypt)
    print("\nForged token  :", forged.hex())
    print("Forged profile:", service.decrypt(forged))
    print("Admin ?", service.is_admin(forged))
