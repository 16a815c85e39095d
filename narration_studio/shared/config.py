"""
Configuration management for the narration studio.
"""

import json
import os
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .enums import StoreBackend

DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"  # Rachel

# field name -> environment variable
ENV_VARIABLES: dict[str, str] = {
    "github_token": "GITHUB_TOKEN",
    "github_repo": "GITHUB_REPO",
    "github_branch": "GITHUB_BRANCH",
    "github_api_base": "GITHUB_API_BASE",
    "studio_secret": "STUDIO_SECRET",
    "elevenlabs_api_key": "ELEVENLABS_API_KEY",
    "elevenlabs_voice_id": "ELEVENLABS_VOICE_ID",
    "elevenlabs_model_id": "ELEVENLABS_MODEL_ID",
    "elevenlabs_api_base": "ELEVENLABS_API_BASE",
    "store_backend": "STUDIO_STORE_BACKEND",
    "local_root": "STUDIO_LOCAL_ROOT",
    "modules_dir": "STUDIO_MODULES_DIR",
    "audio_dir": "STUDIO_AUDIO_DIR",
    "manifest_path": "STUDIO_MANIFEST_PATH",
    "audio_extension": "STUDIO_AUDIO_EXTENSION",
    "voice_stability": "STUDIO_VOICE_STABILITY",
    "voice_similarity_boost": "STUDIO_VOICE_SIMILARITY_BOOST",
    "tts_request_delay": "STUDIO_TTS_REQUEST_DELAY",
    "http_timeout": "STUDIO_HTTP_TIMEOUT",
    "ffmpeg_binary": "STUDIO_FFMPEG_BINARY",
    "mp3_quality": "STUDIO_MP3_QUALITY",
    "max_upload_bytes": "STUDIO_MAX_UPLOAD_BYTES",
    "log_level": "STUDIO_LOG_LEVEL",
    "allowed_origins": "ALLOWED_ORIGINS",
}


class StudioConfig(BaseModel):
    """Explicit configuration passed to every store, driver and workflow."""

    github_token: str | None = None
    github_repo: str | None = Field(None, description="owner/name of the content repository")
    github_branch: str = "main"
    github_api_base: str = "https://api.github.com"

    store_backend: StoreBackend = StoreBackend.GITHUB
    local_root: str = "."
    modules_dir: str = "modules"
    audio_dir: str = "audio"
    manifest_path: str = "audio/manifest.json"
    audio_extension: str = "mp3"

    studio_secret: str | None = None

    elevenlabs_api_key: str | None = None
    elevenlabs_voice_id: str = DEFAULT_VOICE_ID
    elevenlabs_model_id: str = "eleven_turbo_v2_5"
    elevenlabs_api_base: str = "https://api.elevenlabs.io"
    voice_stability: float = 0.5
    voice_similarity_boost: float = 0.75
    tts_request_delay: float = Field(0.5, ge=0, description="Seconds between batch provider calls")

    http_timeout: int = 30
    ffmpeg_binary: str = "ffmpeg"
    mp3_quality: int = Field(2, ge=0, le=9)
    max_upload_bytes: int = 6 * 1024 * 1024

    log_level: str = "INFO"
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, env_file: str | None = None, **overrides: Any) -> "StudioConfig":
        """Build configuration from ``.env``, the environment and an optional YAML file.

        Precedence, lowest first: field defaults, YAML file named by
        ``STUDIO_CONFIG_PATH``, environment variables, keyword overrides.
        """
        load_dotenv(dotenv_path=env_file or os.path.join(os.getcwd(), ".env"), override=False)

        values: dict[str, Any] = {}
        values.update(cls.load_yaml(os.getenv("STUDIO_CONFIG_PATH")))
        for field, variable in ENV_VARIABLES.items():
            raw = os.getenv(variable)
            if raw is None or raw == "":
                continue
            values[field] = cls._coerce_env_value(field, raw)
        values.update(overrides)
        return cls(**values)

    @staticmethod
    def load_yaml(path: str | None) -> dict[str, Any]:
        """Load a YAML mapping, treating a missing file as empty."""
        if not path:
            return {}
        try:
            with open(path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        return data

    @staticmethod
    def _coerce_env_value(field: str, raw: str) -> Any:
        if field == "allowed_origins":
            return json.loads(raw)
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        return raw

    @property
    def github_configured(self) -> bool:
        return bool(self.github_token and self.github_repo)

    def module_path(self, deck_id: str) -> str:
        return f"{self.modules_dir}/{deck_id}.html"

    def audio_path(self, slide_key: str) -> str:
        return f"{self.audio_dir}/{slide_key}"

    def deck_audio_dir(self, deck_id: str) -> str:
        return f"{self.audio_dir}/{deck_id}"
