"""
Tests for token utilities
"""
import base64
import json

import pytest
from pydantic import ValidationError

from listhub.utils.token import _sign, encode_config, decode_config, validate_token
from listhub.models.config import (
    ImportedAddon,
    ImportedCatalog,
    SortPreference,
    TokenBundle,
    UserConfig,
)


def test_encode_decode_config(sample_user_config):
    """Test encoding and decoding of user configuration"""
    # Encode
    token = encode_config(sample_user_config)
    assert token
    assert isinstance(token, str)

    # Decode
    decoded = decode_config(token)
    assert decoded is not None
    assert decoded.mdblist_api_key == sample_user_config.mdblist_api_key
    assert decoded.list_order == sample_user_config.list_order
    assert decoded.hidden_lists == sample_user_config.hidden_lists


def test_decode_invalid_token():
    """Test decoding invalid token returns None"""
    invalid_tokens = [
        "invalid",
        "not_a_token",
        "",
        "eyJpbnZhbGlkIjoidG9rZW4ifQ==",  # Valid base64 but invalid payload
    ]

    for token in invalid_tokens:
        decoded = decode_config(token)
        assert decoded is None


def test_validate_token(sample_user_config):
    """Test token validation"""
    valid_token = encode_config(sample_user_config)
    assert validate_token(valid_token) is True

    assert validate_token("invalid_token") is False
    assert validate_token("") is False


def test_token_tampering(sample_user_config):
    """Test that tampered tokens are rejected"""
    token = encode_config(sample_user_config)

    tampered = token[:-5] + "XXXXX"

    decoded = decode_config(tampered)
    assert decoded is None


def test_forged_config_is_rejected(sample_user_config):
    """A payload re-signed with the wrong salt never decodes"""
    config_json = sample_user_config.model_copy(update={"hidden_lists": ["x"]}).model_dump_json()
    payload = json.dumps({"config": config_json, "signature": "0" * 64})
    forged = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("utf-8")

    assert decode_config(forged) is None


def test_signed_but_invalid_config_is_rejected():
    config_json = json.dumps({"mdblist_api_key": "bad key!"})
    payload = json.dumps({"config": config_json, "signature": _sign(config_json)})
    token = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("utf-8")

    assert decode_config(token) is None


def test_config_serialization():
    """Test that all config fields are preserved"""
    config = UserConfig(
        mdblist_api_key="testmdbfake123456789abc",
        trakt=TokenBundle(access_token="access", refresh_token="refresh", expires_at=1_700_000_000.0),
        list_order=["aiolists-2-L", "aiolists-1-L"],
        hidden_lists=["trakt_popular_movies"],
        custom_list_names={"aiolists-1-L": "Favourites"},
        imported_addons={
            "com.example": ImportedAddon(
                id="com.example",
                name="Example",
                manifest_url="https://example.com/manifest.json",
                api_base_url="https://example.com/",
                catalogs=[ImportedCatalog(
                    id="com.example_top_movie",
                    original_id="top",
                    original_type="movie",
                    name="Top",
                    type="movie",
                )],
            )
        },
        sort_preferences={"aiolists-1-L": SortPreference(sort="released", order="asc")},
        disable_genre_filter=True,
    )

    token = encode_config(config)
    decoded = decode_config(token)

    assert decoded == config


def test_mdblist_key_validation():
    assert UserConfig(mdblist_api_key="  abcdEFGH1234  ").mdblist_api_key == "abcdEFGH1234"
    assert UserConfig(mdblist_api_key="   ").mdblist_api_key is None

    with pytest.raises(ValidationError):
        UserConfig(mdblist_api_key="short")
    with pytest.raises(ValidationError):
        UserConfig(mdblist_api_key="has-dashes-in-it")


def test_token_bundle_states():
    assert TokenBundle().state(now=100).value == "no_token"
    assert TokenBundle(access_token="a", expires_at=200).state(now=100).value == "valid"
    assert TokenBundle(access_token="a", expires_at=200).state(now=200).value == "expired"
    assert TokenBundle.invalidated().state(now=100).value == "invalid"


def test_salt_parameter_scopes_signature(sample_user_config):
    token = encode_config(sample_user_config, salt="engine-salt")

    assert decode_config(token, salt="engine-salt") == sample_user_config
    assert decode_config(token, salt="another-salt") is None
    assert validate_token(token, salt="engine-salt") is True
