from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict, FrozenSet
import yaml
from dotenv import load_dotenv

from vouchcord.util.logger import get_logger

logger = get_logger("app_configuration")

load_dotenv()

CONFIG_PATH = Path(os.getenv("VOUCHCORD_CONFIG", "./config/app_config.yml")).resolve()

DEFAULT_PREFIX = "!"
DEFAULT_CACHE_TTL_SECONDS = 30.0
DEFAULT_VERIFICATION_TIMEOUT_SECONDS = 3.0
DEFAULT_FEEDBACK_DELETE_AFTER_SECONDS = 3.0
DEFAULT_DATABASE_PATH = "data/vouchcord.db"


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches the contents of the configuration file and exposes
    typed properties for every section Vouchcord reads. Missing sections or
    keys fall back to defaults, so an absent file yields a working bot.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if data is None:
                    return {}
                if not isinstance(data, dict):
                    logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
                    return {}
                return data
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    def _float(self, section: str, key: str, default: float) -> float:
        value = self._section(section).get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] %s.%s=%r is not a number; using %s", section, key, value, default)
            return default

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping (empty on error)."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def allowed_mention_ids(self) -> FrozenSet[str]:
        """User IDs a vouch may mention. Empty means any mention is accepted."""
        ids = self._section("vouch").get("allowed_mention_ids") or []
        if not isinstance(ids, (list, tuple, set)):
            logger.warning("[APP CONFIGURATION] vouch.allowed_mention_ids must be a list; ignoring it.")
            return frozenset()
        return frozenset(str(uid).strip() for uid in ids if str(uid).strip())

    @property
    def verify_images(self) -> bool:
        """Whether proof image URLs are checked over HTTP before being stored."""
        return bool(self._section("proof").get("verify_images", False))

    @property
    def verification_timeout(self) -> float:
        return self._float("proof", "verification_timeout_seconds", DEFAULT_VERIFICATION_TIMEOUT_SECONDS)

    @property
    def channel_cache_ttl(self) -> float:
        """Seconds before the monitored-channel cache is reloaded from the database."""
        return self._float("channel_cache", "ttl_seconds", DEFAULT_CACHE_TTL_SECONDS)

    @property
    def default_prefix(self) -> str:
        prefix = str(self._section("prefix").get("default", DEFAULT_PREFIX) or DEFAULT_PREFIX)
        return prefix.strip() or DEFAULT_PREFIX

    @property
    def feedback_delete_after(self) -> float:
        """Seconds transient confirmation and warning replies stay visible."""
        return self._float("feedback", "delete_after_seconds", DEFAULT_FEEDBACK_DELETE_AFTER_SECONDS)

    @property
    def database_path(self) -> Path:
        value = self._section("database").get("path") or DEFAULT_DATABASE_PATH
        return Path(str(value)).resolve()


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
