"""Hugging Face Space wrapper.

Sends a song to the Lyric-Cleaner Space through the Gradio client and maps
its three outputs to ``original`` / ``cleaned`` / ``audio``.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import requests
from gradio_client import Client, handle_file

from cleansong.errors import InferenceError
from cleansong.utils.data_url import mime_for_path, to_data_url

logger = logging.getLogger(__name__)


@dataclass
class SpaceSettings:
    space_id: str = "CleanSong/Lyric-Cleaner"
    api_name: str = "/process_song"
    hf_token: str = ""

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "SpaceSettings":
        return cls(
            space_id=cfg.get("SPACE_ID") or cls.space_id,
            api_name=cfg.get("SPACE_API_NAME") or cls.api_name,
            hf_token=(cfg.get("HF_TOKEN") or "").strip(),
        )


def _connect(settings: SpaceSettings) -> Client:
    # Token is only required when the Space is private
    return Client(settings.space_id, hf_token=settings.hf_token or None, verbose=False)


def _audio_output(value: Any, timeout: float = 60) -> Optional[str]:
    """Re-encode the Space's audio output as a data URL.

    Gradio hands audio back as a local file path, a dict with ``path``/``url``,
    or occasionally a remote URL.
    """
    if not value:
        return None
    if isinstance(value, dict):
        value = value.get("path") or value.get("url") or value.get("name")
        if not value:
            logger.warning("Space audio output has no path or url; dropping audio")
            return None
    value = str(value)
    if value.startswith("data:"):
        return value
    if value.startswith(("http://", "https://")):
        try:
            r = requests.get(value, timeout=timeout)
        except requests.RequestException as e:
            logger.warning("Could not fetch Space audio %s: %s; dropping audio", value, e)
            return None
        if not r.ok:
            logger.warning("Fetching Space audio %s returned HTTP %s; dropping audio", value, r.status_code)
            return None
        mime = (r.headers.get("Content-Type") or "").split(";", 1)[0].strip()
        if not mime.startswith("audio/"):
            mime = mime_for_path(value.split("?", 1)[0])
        return to_data_url(r.content, mime)
    if not os.path.exists(value):
        logger.warning("Space audio file %s does not exist; dropping audio", value)
        return None
    with open(value, "rb") as f:
        return to_data_url(f.read(), mime_for_path(value))


class LyricCleaner:
    def __init__(
        self,
        settings: SpaceSettings,
        connect: Callable[[SpaceSettings], Any] = _connect,
    ) -> None:
        self.settings = settings
        self._connect = connect

    def process(self, audio: bytes, suffix: str = ".wav") -> Dict[str, Any]:
        path = ""
        try:
            with tempfile.NamedTemporaryFile(prefix="cleansong_", suffix=suffix, delete=False) as f:
                f.write(audio)
                path = f.name
            logger.info("Sending %d bytes to Space %s%s", len(audio), self.settings.space_id, self.settings.api_name)
            try:
                client = self._connect(self.settings)
                result = client.predict(audio_path=handle_file(path), api_name=self.settings.api_name)
            except Exception as e:
                logger.warning("Space call failed: %s: %s", type(e).__name__, e)
                raise InferenceError(f"Lyric cleaning failed: {e}", details=type(e).__name__) from e
        finally:
            if path and os.path.exists(path):
                os.remove(path)

        return self.map_outputs(result)

    @staticmethod
    def map_outputs(result: Any) -> Dict[str, Any]:
        if isinstance(result, dict) and "data" in result:
            result = result["data"]
        if not isinstance(result, (list, tuple)) or len(result) < 2:
            raise InferenceError("Unknown response format from Space", details=repr(result))
        original = result[0] or ""
        cleaned = result[1] or ""
        audio = _audio_output(result[2]) if len(result) > 2 else None
        return {"original": original, "cleaned": cleaned, "audio": audio}
