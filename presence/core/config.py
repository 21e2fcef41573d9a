import os
import logging
from pathlib import Path
from pydantic import BaseModel, field_validator
from dotenv import load_dotenv
load_dotenv()

_DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parent.parent / "static")

class Cfg(BaseModel):
    APP_PORT: int = int(os.getenv("APP_PORT", 3000))

    # Grace period between the roster becoming empty and the id sequence reset
    RESET_COUNTDOWN_S: int = int(os.getenv("RESET_COUNTDOWN_S", 20))
    COUNTDOWN_TICK_S: float = float(os.getenv("COUNTDOWN_TICK_S", "1.0"))

    # countdownStart / countdownCancel / systemReset
    BROADCAST_COUNTDOWN_EVENTS: bool = os.getenv("BROADCAST_COUNTDOWN_EVENTS", "true").lower() == "true"
    # countdownUpdate once per tick
    BROADCAST_COUNTDOWN_TICKS: bool = os.getenv("BROADCAST_COUNTDOWN_TICKS", "false").lower() == "true"

    # Per-socket outbound queue bound; oldest frame is dropped when full
    OUTBOX_MAX_SIZE: int = int(os.getenv("OUTBOX_MAX_SIZE", 100))

    STATIC_DIR: str = os.getenv("STATIC_DIR", _DEFAULT_STATIC_DIR)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @field_validator('RESET_COUNTDOWN_S')
    @classmethod
    def validate_reset_countdown(cls, v):
        if v <= 0:
            raise ValueError('RESET_COUNTDOWN_S must be > 0')
        return v

    @field_validator('COUNTDOWN_TICK_S')
    @classmethod
    def validate_tick(cls, v):
        if v <= 0:
            raise ValueError('COUNTDOWN_TICK_S must be > 0')
        return v

    @field_validator('OUTBOX_MAX_SIZE')
    @classmethod
    def validate_outbox_size(cls, v):
        if v <= 0:
            raise ValueError('OUTBOX_MAX_SIZE must be > 0')
        return v

    @field_validator('APP_PORT')
    @classmethod
    def validate_app_port(cls, v):
        if not (1 <= v <= 65535):
            raise ValueError('APP_PORT must be between 1-65535')
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f'LOG_LEVEL must be a standard logging level name, got: {v}')
        return level

cfg = Cfg()
