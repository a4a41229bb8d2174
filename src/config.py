from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.video.focus import SHARPNESS_THRESHOLD


class Settings(BaseSettings):
    # Integer strings select a capture device index; anything else is a path/URL.
    camera_device: str = "0"

    detector_model_path: str = "models/efficientdet_lite0.tflite"
    detector_score_threshold: float = 0.5
    detector_max_results: int = 20

    sharpness_threshold: float = SHARPNESS_THRESHOLD
    excluded_labels: list[str] = ["person"]

    # BGR, OpenCV channel order
    focused_color: tuple[int, int, int] = (0, 255, 0)
    neutral_color: tuple[int, int, int] = (255, 255, 255)
    line_width: int = 2
    corner_size: int = 20
    corner_gap: int = 10

    source_poll_interval_s: float = 0.1
    pacing_delay_s: float = 0.0
    throttle: bool = False
    throttle_delay_s: float = 0.15

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def camera_source(self) -> int | str:
        """Device index when ``camera_device`` is all digits, else the raw string."""
        if self.camera_device.isdigit():
            return int(self.camera_device)
        return self.camera_device

    @property
    def cycle_delay_s(self) -> float:
        """Delay between the end of one detection cycle and the next."""
        if self.throttle:
            return self.pacing_delay_s + self.throttle_delay_s
        return self.pacing_delay_s


@lru_cache
def get_settings() -> Settings:
    return Settings()
