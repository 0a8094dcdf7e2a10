#!/usr/bin/env python3
"""
Generate the secrets the access layer reads from .env.
Run this and copy the output to your .env file.
"""

import secrets

if __name__ == "__main__":
    print("=" * 60)
    print("CMS Access Secret Generator")
    print("=" * 60)
    print("\nGenerating secure random values...\n")

    print(f"JWT_SECRET_KEY={secrets.token_hex(32)}")
    # Shared with trusted front-ends for anonymous public reads.
    print(f"CMS_PUBLIC_API_KEY={secrets.token_urlsafe(24)}")
    print(f"PUBLIC_FETCH_CODE={secrets.token_urlsafe(12)}")

    print("\n" + "=" * 60)
    print("Copy the lines above to your .env file")
    print("=" * 60)
