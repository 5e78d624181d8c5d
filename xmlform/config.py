import os
import sys
from typing import Literal

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field

LOG_FORMAT = "{time:HH:mm:ss} | {level: <8} | {message}"
ENV_PREFIX = "XMLFORM_"


class Settings(BaseModel):
    paragraph_threshold: int = Field(100, description="Text longer than this renders as a paragraph.")
    section_depth: int = Field(2, description="Deepest level that still gets a section heading.")
    table_depth: int = Field(2, description="Deepest level a homogeneous collection renders as a table.")
    column_inference: Literal["first", "union"] = "first"
    mixed_content: Literal["collapse", "reject"] = "collapse"
    unspecified_label: str = "Not specified"
    indent: int = 2
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Read XMLFORM_* variables (and LOGURU_LEVEL), loading a .env file first."""
        if dotenv:
            load_dotenv()
        values = {}
        for name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        if "log_level" not in values and os.getenv("LOGURU_LEVEL"):
            values["log_level"] = os.getenv("LOGURU_LEVEL")
        return cls(**values)


DEFAULT_SETTINGS = Settings()


def configure_logging(level: str = "INFO"):
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
