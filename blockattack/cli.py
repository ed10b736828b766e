#!/usr/bin/env python3
"""
Command line front end for the attacks.

Usage:
  blockattack xor file.b64                      # break repeating-key XOR
  blockattack detect-ecb file.hex [-b 16]       # find ECB lines in a hex file
  blockattack demo [all|mode|ecb|prepend|profile|bitflip|padding] [-w N]
  blockattack serve [--host H] [--port P]       # run the HTTP padding oracle
  blockattack vaudenay USER [--url URL] [-w N]  # attack a running server
"""

import argparse
import base64
import binascii

import requests

from blockattack.attack.aes.cbc.bitflip import CommentService, forge_admin
from blockattack.attack.aes.cbc.server_padding_oracle import HOST, PORT, PaddingOracle, create_app
from blockattack.attack.aes.cbc.vaudenay_attack import BASE_URL, RemotePaddingOracle, vaudenay_attack
from blockattack.attack.aes.ecb.detection import detect_ecb_lines, detect_mode
from blockattack.attack.aes.ecb.oracle_attack import decrypt_append_oracle, decrypt_prepend_oracle
from blockattack.attack.aes.ecb.oracles import AppendECBOracle, PrependECBOracle, RandomModeOracle
from blockattack.attack.aes.ecb.token_forgery import ProfileService, forge_admin_profile
from blockattack.attack.xor.repeating_key import break_repeating_key_xor, rank_key_lengths
from blockattack.modes import BLOCK_SIZE

DEMO_SECRET = (b"Rollin' in my 5.0\n"
               b"With my rag-top down so my hair can blow\n"
               b"The girlies on standby waving just to say hi\n")


def demo_mode(workers):
    oracle = RandomModeOracle()
    hits = 0
    for _ in range(100):
        hits += detect_mode(oracle) == oracle.last_mode
    print(f"[+] Mode detection: {hits}/100 correct")


def demo_ecb(workers):
    recovered = decrypt_append_oracle(AppendECBOracle(DEMO_SECRET), workers=workers, verbose=True)
    print(f"[+] Recovered: {recovered!r}")
    print(f"    Match ? {recovered == DEMO_SECRET}")


def demo_prepend(workers):
    recovered = decrypt_prepend_oracle(PrependECBOracle(DEMO_SECRET), workers=workers, verbose=True)
    print(f"[+] Recovered: {recovered!r}")
    print(f"    Match ? {recovered == DEMO_SECRET}")


def demo_profile(workers):
    service = ProfileService()
    forged = forge_admin_profile(service.encrypt)
    print(f"[+] Forged profile: {service.decrypt(forged)}")
    print(f"    Admin ? {service.is_admin(forged)}")


def demo_bitflip(workers):
    service = CommentService()
    forged = forge_admin(service.encrypt, verbose=True)
    print(f"[+] Admin ? {service.is_admin(forged)}")


def demo_padding(workers):
    oracle = PaddingOracle()
    ciphertext = oracle.encrypt(DEMO_SECRET)
    recovered = vaudenay_attack(oracle, ciphertext, workers=workers, verbose=True)
    print(f"[+] Recovered: {recovered!r}")
    print(f"    Match ? {recovered == DEMO_SECRET}")


DEMOS = {
    "mode": demo_mode,
    "ecb": demo_ecb,
    "prepend": demo_prepend,
    "profile": demo_profile,
    "bitflip": demo_bitflip,
    "padding": demo_padding,
}


def cmd_xor(args):
    with open(args.file, "rb") as f:
        data = base64.b64decode(f.read())
    print("[*] Most likely key lengths:", rank_key_lengths(data)[:5])
    result = break_repeating_key_xor(data)
    if result is None:
        print("[-] Ciphertext too short to estimate a key length")
        return
    print(f"[+] Key: {result.key!r}")
    print(result.plaintext.decode(errors="replace"))


def cmd_detect_ecb(args):
    with open(args.file) as f:
        lines = [binascii.unhexlify(line.strip()) for line in f if line.strip()]
    found = detect_ecb_lines(lines, args.block_size)
    if not found:
        print("[-] No ECB ciphertext found")
    for index in found:
        print(f"[+] Line {index} is ECB encrypted: {lines[index].hex()}")


def cmd_demo(args):
    names = DEMOS if args.name == "all" else [args.name]
    for name in names:
        print(f"\n[*] Demo: {name}")
        DEMOS[name](args.workers)


def cmd_serve(args):
    print(f"Starting server on http://{args.host}:{args.port}")
    print("Endpoints: /api/encrypt, /api/verify_padding, /status")
    create_app().run(host=args.host, port=args.port)


def cmd_vaudenay(args):
    remote = RemotePaddingOracle(args.username, args.url)
    print(f"Target user: {args.username}\n")
    result = vaudenay_attack(remote, remote.fetch(), workers=args.workers, verbose=True)
    print(f"Decrypted message:\n{result.decode(errors='replace')}")


def build_argparser():
    p = argparse.ArgumentParser(prog="blockattack",
                                description="Oracle attacks against XOR, ECB and CBC.")
    sub = p.add_subparsers(dest="cmd", required=True)

    xor = sub.add_parser("xor", help="Break repeating-key XOR on a base64 file.")
    xor.add_argument("file", help="Base64 encoded ciphertext")
    xor.set_defaults(func=cmd_xor)

    ecb = sub.add_parser("detect-ecb", help="Find ECB encrypted lines in a hex file.")
    ecb.add_argument("file", help="One hex encoded ciphertext per line")
    ecb.add_argument("-b", "--block-size", type=int, default=BLOCK_SIZE,
                     help=f"Block size in bytes (default {BLOCK_SIZE})")
    ecb.set_defaults(func=cmd_detect_ecb)

    demo = sub.add_parser("demo", help="Run attacks against in-process oracles.")
    demo.add_argument("name", nargs="?", default="all", choices=["all", *DEMOS])
    demo.add_argument("-w", "--workers", type=int, default=1, help="Threads per byte position")
    demo.set_defaults(func=cmd_demo)

    serve = sub.add_parser("serve", help="Run the HTTP padding oracle.")
    serve.add_argument("--host", default=HOST)
    serve.add_argument("--port", type=int, default=PORT)
    serve.set_defaults(func=cmd_serve)

    vaud = sub.add_parser("vaudenay", help="Padding oracle attack on a running server.")
    vaud.add_argument("username", help="User whose message is attacked")
    vaud.add_argument("--url", default=BASE_URL, help=f"Server URL (default {BASE_URL})")
    vaud.add_argument("-w", "--workers", type=int, default=1, help="Threads per byte position")
    vaud.set_defaults(func=cmd_vaudenay)
    return p


def main():
    parser = build_argparser()
    args = parser.parse_args()
    try:
        args.func(args)
    except (OSError, ValueError, requests.RequestException) as e:
        print(f"Error: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
