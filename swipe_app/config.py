"""Configuration helpers for the SwipeShop taste engine."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_VISION_MODEL = "models/gemini-1.5-flash-002"


@dataclass
class AppConfig:
    """Configuration values for the engine and its collaborators.

    Only the wiring knobs live here. Ranking and pick bonus magnitudes are
    module-level constants next to the code that applies them.
    """

    catalog_base_url: Optional[str] = None
    catalog_timeout_seconds: float = 10.0
    profile_store_backend: str = "json"
    profile_store_path: Optional[str] = None
    google_api_key: Optional[str] = None
    vision_model: str = DEFAULT_VISION_MODEL
    analysis_timeout_seconds: float = 25.0
    refill_threshold: int = 5
    initial_page_size: int = 30
    refill_page_size: int = 20
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that secrets can be
        injected by the runtime environment.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("APP_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        return cls(
            catalog_base_url=get_value("catalog_base_url"),
            catalog_timeout_seconds=float(get_value("catalog_timeout_seconds", "10") or 10),
            profile_store_backend=str(get_value("profile_store_backend", "json") or "json"),
            profile_store_path=get_value("profile_store_path"),
            google_api_key=get_value("google_api_key"),
            vision_model=str(get_value("vision_model", DEFAULT_VISION_MODEL) or DEFAULT_VISION_MODEL),
            analysis_timeout_seconds=float(get_value("analysis_timeout_seconds", "25") or 25),
            refill_threshold=int(get_value("refill_threshold", "5") or 5),
            initial_page_size=int(get_value("initial_page_size", "30") or 30),
            refill_page_size=int(get_value("refill_page_size", "20") or 20),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a flat ``key: value`` config file."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
