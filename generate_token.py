#!/usr/bin/env python3
"""
Generate Installation Token Script
Creates a properly signed token for manual Stremio addon installation
"""
import sys
import time

from pydantic import ValidationError

from listhub.core.config import settings
from listhub.core.context import EngineContext
from listhub.models.config import TokenBundle, UserConfig
from listhub.utils.token import encode_config


def _split(value: str):
    return [part.strip() for part in value.split(",") if part.strip()]


def main():
    print("📚 ListHub - Token Generator")
    print("=" * 60)

    default_mdblist = settings.MDBLIST_API_KEY or ""
    hint = f" (default: {default_mdblist[:6]}...)" if default_mdblist else " (optional)"
    mdblist_key = input(f"\n1. MDBList API Key{hint}: ").strip() or default_mdblist or None

    trakt = TokenBundle()
    access_token = input("2. Trakt access token (optional): ").strip()
    if access_token:
        refresh_token = input("   Trakt refresh token: ").strip() or None
        expires_in = input("   Seconds until the access token expires (default: 7776000): ").strip()
        expires_in = int(expires_in) if expires_in else 7776000
        trakt = TokenBundle(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=time.time() + expires_in,
        )

    list_order = _split(input("3. Catalog order, comma separated ids (optional): "))
    hidden_lists = _split(input("4. Hidden catalog ids, comma separated (optional): "))

    disable_genres = input("5. Disable the genre filter? (y/N): ").strip().lower()
    disable_genres = disable_genres == 'y'

    try:
        config = UserConfig(
            mdblist_api_key=mdblist_key,
            trakt=trakt,
            list_order=list_order,
            hidden_lists=hidden_lists,
            disable_genre_filter=disable_genres,
        )
    except ValidationError as e:
        print(f"\n❌ Invalid configuration: {e}")
        sys.exit(1)

    token = encode_config(config)

    base_url = str(settings.BASE_URL).rstrip('/')
    install_url = f"{base_url}/{token}/manifest.json"

    print("\n" + "=" * 60)
    print("✅ Token generated successfully!")
    print("=" * 60)
    print(f"\n📋 Install URL:\n{install_url}\n")
    print("🔗 Installation Steps:")
    print("  1. Copy the URL above")
    print("  2. Open Stremio")
    print("  3. Go to Add-ons → Install from URL")
    print("  4. Paste the URL and click Install")
    if not access_token and settings.TRAKT_CLIENT_ID:
        auth_url = EngineContext(settings).trakt.authorization_url()
        print(f"\n🔑 To add Trakt lists, authorize first:\n{auth_url}")
    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
