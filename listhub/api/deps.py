"""
Endpoint Helpers
Config token decoding and response header plumbing shared by the routers
"""
from fastapi import HTTPException, Request, Response

from listhub.core.context import EngineContext
from listhub.models.config import TokenBundle, UserConfig
from listhub.utils.token import decode_config, encode_config

CONFIG_TOKEN_HEADER = "X-Config-Token"


def get_engine(request: Request) -> EngineContext:
    return request.app.state.engine


def load_config(request: Request, token: str) -> UserConfig:
    """Decode a config token with the engine's salt or fail with 401"""
    config = decode_config(token, salt=get_engine(request).settings.TOKEN_SALT)
    if not config:
        raise HTTPException(status_code=401, detail="Invalid configuration token")
    return config


def sign_config(request: Request, config: UserConfig) -> str:
    return encode_config(config, salt=get_engine(request).settings.TOKEN_SALT)


def set_no_cache(response: Response):
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"


def publish_token_change(request: Request, response: Response, config: UserConfig, before: TokenBundle):
    """Hand a re-encoded config back to the caller when the Trakt bundle was refreshed or invalidated"""
    if config.trakt != before:
        response.headers[CONFIG_TOKEN_HEADER] = sign_config(request, config)
