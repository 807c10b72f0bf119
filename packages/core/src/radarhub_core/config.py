"""Configuration utilities."""
from dataclasses import dataclass
from typing import Optional
import os, sys
from pathlib import Path
from dotenv import load_dotenv  # type: ignore


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    return val if val not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    # Directory holding the store file; the historical data/leveldb path.
    data_dir: str = _env("RADARHUB_DATA_DIR", "data/leveldb")
    db_url: Optional[str] = _env("RADARHUB_DB_URL", None)
    store_file: str = _env("RADARHUB_STORE_FILE", "store.db")
    # Stations run on a fixed UTC+7 operating clock, independent of the host.
    tz_offset_hours: int = _env_int("RADARHUB_TZ_OFFSET_HOURS", 7)
    log_level: str = _env("LOG_LEVEL", "INFO")

    def _bundle_base(self) -> Optional[str]:
        base = getattr(sys, "_MEIPASS", None)
        if base and os.path.isdir(base):
            return base
        return None

    def repo_root(self) -> str:
        base = self._bundle_base()
        if base:  # Frozen bundle base (PyInstaller, etc.)
            return base
        cur = os.path.abspath(os.path.dirname(__file__))
        markers = ("pyproject.toml", ".git")
        for _ in range(8):
            if any(os.path.exists(os.path.join(cur, m)) for m in markers):
                return cur
            parent = os.path.dirname(cur)
            if parent == cur:
                break
            cur = parent
        # packages/core/src/radarhub_core -> repository root
        return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../../../"))

    def load_env(self) -> None:
        """Load the canonical env file if present (idempotent)."""
        env_file = Path(self.repo_root()) / "config" / "env" / ".env"
        if env_file.exists():
            load_dotenv(env_file, override=False)

    def resolve_path(self, p: Optional[str]) -> Optional[str]:
        if not p:
            return None
        if os.path.isabs(p):
            return p
        return os.path.abspath(os.path.join(self.repo_root(), p))

    def effective_data_dir(self) -> str:
        return self.resolve_path(self.data_dir) or os.path.join(self.repo_root(), "data", "leveldb")

    def store_url(self) -> str:
        """SQLAlchemy URL of the store; ``db_url`` wins over ``data_dir``."""
        if self.db_url:
            return self.db_url
        return f"sqlite:///{os.path.join(self.effective_data_dir(), self.store_file)}"

    def debug_print(self) -> None:  # lightweight runtime trace
        if _env("RADARHUB_DEBUG_CONFIG", "0") in ("1", "true", "yes"):  # opt-in
            print(f"[config] repo_root={self.repo_root()}")
            print(f"[config] store_url={self.store_url()}")
            print(f"[config] tz_offset_hours={self.tz_offset_hours}")
