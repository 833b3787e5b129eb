"""
Hardware-based default model recommendation.

Probing the host is left to the caller; this module only maps detected
memory to a model that fits it. The router never consults it.
"""

from typing import Optional

from pydantic import BaseModel, Field


class HardwareInfo(BaseModel):
    """Host capabilities as reported by the caller. Memory is in whole GB."""
    cpu: str = "Unknown CPU"
    ram_gb: int = Field(default=0, ge=0)
    gpu: Optional[str] = None
    vram_gb: int = Field(default=0, ge=0)
    os: str = ""
    cores: int = Field(default=0, ge=0)
    threads: int = Field(default=0, ge=0)


# (minimum VRAM GB, minimum RAM GB, model) checked top to bottom
MODEL_TIERS: list[tuple[int, int, str]] = [
    (16, 0, "deepseek-coder-33b-instruct.Q4_K_M.gguf"),
    (8, 0, "codellama-13b-instruct.Q4_K_M.gguf"),
    (0, 16, "codellama-7b-instruct.Q4_K_M.gguf"),
]
FALLBACK_MODEL = "tinyllama-1.1b-chat-v1.0.Q4_K_M.gguf"


def recommend_model(hardware: HardwareInfo) -> str:
    """Return the largest model id the given memory can hold."""
    for min_vram, min_ram, model in MODEL_TIERS:
        if hardware.vram_gb >= min_vram and hardware.ram_gb >= min_ram:
            return model
    return FALLBACK_MODEL
