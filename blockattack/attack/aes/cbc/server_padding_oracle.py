#!/usr/bin/env python3
"""
Vulnerable CBC padding oracle, in-process and over HTTP.

PaddingOracle owns a random AES key: encrypt() returns IV || ciphertext, and
calling the oracle with IV || ciphertext only says whether the PKCS#7 padding
of the decryption is valid.

create_app() wraps one PaddingOracle per user in a Flask service:
  POST /api/encrypt         {"username"}                     -> {"iv", "ciphertext"}
  POST /api/verify_padding  {"username", "iv", "ciphertext"} -> {"valid"}
  GET  /status

Usage: python3 -m blockattack.attack.aes.cbc.server_padding_oracle
"""

import base64

from Crypto.Random import get_random_bytes
from flask import Flask, jsonify, request

from blockattack.modes import BLOCK_SIZE, decrypt_cbc, encrypt_cbc
from blockattack.padding import is_valid, pad

HOST, PORT = "localhost", 5000
KEY_SIZE = 16


class PaddingOracle:
    """Decrypt-and-validate oracle. Neither key nor plaintext ever leaves it."""

    block_size = BLOCK_SIZE

    def __init__(self):
        self.__key = get_random_bytes(KEY_SIZE)

    def encrypt(self, plaintext: bytes) -> bytes:
        """AES-CBC with a fresh random IV, returned as IV || ciphertext."""
        iv = get_random_bytes(BLOCK_SIZE)
        return iv + encrypt_cbc(self.__key, iv, pad(plaintext, BLOCK_SIZE))

    def __call__(self, ciphertext: bytes) -> bool:
        iv, body = ciphertext[:BLOCK_SIZE], ciphertext[BLOCK_SIZE:]
        if len(iv) != BLOCK_SIZE or not body or len(body) % BLOCK_SIZE != 0:
            return False
        return is_valid(decrypt_cbc(self.__key, iv, body), BLOCK_SIZE)


def default_message(username: str) -> bytes:
    flag = get_random_bytes(8).hex()
    return f"Congratulations {username}! Here is your flag: FLAG{{{flag}}}".encode()


def create_app(message_for=default_message) -> Flask:
    """Flask padding-oracle service; message_for(username) picks each user's secret."""
    app = Flask(__name__)
    oracles = {}
    messages = {}

    def user_oracle(username):
        if username not in oracles:
            oracles[username] = PaddingOracle()
            messages[username] = message_for(username)
        return oracles[username]

    @app.route("/api/encrypt", methods=["POST"])
    def encrypt_message():
        data = request.get_json(silent=True)
        if not data or "username" not in data:
            return jsonify({"error": "Missing 'username' field"}), 400

        username = data["username"]
        if len(username) < 1:
            return jsonify({"error": "Username must be at least 1 character"}), 400

        oracle = user_oracle(username)
        encrypted = oracle.encrypt(messages[username])
        print(f"[INFO] Encrypted message for user: {username}")

        return jsonify({
            "iv": base64.b64encode(encrypted[:BLOCK_SIZE]).decode(),
            "ciphertext": base64.b64encode(encrypted[BLOCK_SIZE:]).decode(),
        })

    @app.route("/api/verify_padding", methods=["POST"])
    def verify_padding():
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "No JSON data"}), 400

        for field in ("iv", "ciphertext", "username"):
            if field not in data:
                return jsonify({"error": f"Missing '{field}' field"}), 400

        username = data["username"]
        if username not in oracles:
            return jsonify({"error": "Unknown user - call /api/encrypt first"}), 400

        try:
            iv = base64.b64decode(data["iv"])
            ciphertext = base64.b64decode(data["ciphertext"])
        except ValueError as e:
            print(f"[ERROR] Verification failed: {e}")
            return jsonify({"valid": False})

        return jsonify({"valid": oracles[username](iv + ciphertext)})

    @app.route("/status", methods=["GET"])
    def health_check():
        return jsonify({
            "status": "running",
            "users": len(oracles),
            "service": "CBC Padding Oracle",
        })

    return app


if __name__ == "__main__":
    print("-" * 60)
    print(f"Starting server on http://{HOST}:{PORT}")
    print("Endpoints: /api/encrypt, /api/verify_padding, /status")
    create_app().run(host=HOST, port=PORT)
