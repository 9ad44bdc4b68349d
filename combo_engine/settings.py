from typing import Literal

from dotenv import find_dotenv, load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(find_dotenv(), override=False)


class Settings(BaseSettings):
    PROJECT_NAME: str = "combo-engine"
    ENV: str = "dev"
    model_config = SettingsConfigDict(env_file=None)

    # ──────────────────── Logging ─────────────────────

    LOG_LEVEL: str = "DEBUG"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ──────────────────── Table store ─────────────────────

    TABLES_DIR: str = "data/tables"
    COMBO_RULES_TABLE: str = "combo_rules"
    MOTIONS_TABLE: str = "motions"
    MODIFIER_TABLES: list[str] = [
        "motionPaths",
        "torsoAngles",
        "torsoOrientations",
        "resistanceOrigin",
        "grips",
        "gripWidths",
        "elbowRelationship",
        "executionStyles",
        "footPositions",
        "stanceWidths",
        "stanceTypes",
        "loadPlacement",
        "supportStructures",
        "loadingAids",
        "rangeOfMotion",
    ]

    # ──────────────────── Scoring policy ─────────────────────

    SCORE_CLAMP_MIN: float = 0
    SCORE_CLAMP_MAX: float = 5
    SCORE_NORMALIZE_OUTPUT: bool = False
    SCORE_MISSING_KEY_BEHAVIOR: Literal["skip", "zero", "error"] = "skip"


settings = Settings()
