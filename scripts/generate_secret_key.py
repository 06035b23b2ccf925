#!/usr/bin/env python3
"""
Print a JWT_SECRET_KEY line for the .env file.
Production startup exits when JWT_SECRET_KEY is unset.
"""

import argparse
import secrets

from healthapp.config import SECRET_KEY_BYTES


def generate_secret_key(nbytes: int = SECRET_KEY_BYTES) -> str:
    if nbytes < SECRET_KEY_BYTES:
        raise ValueError(f"Session secrets need at least {SECRET_KEY_BYTES} bytes.")
    return secrets.token_hex(nbytes)


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--bytes", type=int, default=SECRET_KEY_BYTES, dest="nbytes")
    args = parser.parse_args(argv)

    try:
        key = generate_secret_key(args.nbytes)
    except ValueError as e:
        parser.error(str(e))

    print(f"JWT_SECRET_KEY={key}")
    print("# Rotating this key signs every user out.")


if __name__ == "__main__":
    main()
