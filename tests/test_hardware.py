"""Tests for hardware-based model recommendation."""

import pytest

from local_llm_router.hardware import FALLBACK_MODEL, HardwareInfo, recommend_model


@pytest.mark.parametrize("ram, vram, expected", [
    (32, 16, "deepseek-coder-33b-instruct.Q4_K_M.gguf"),
    (8, 24, "deepseek-coder-33b-instruct.Q4_K_M.gguf"),
    (32, 8, "codellama-13b-instruct.Q4_K_M.gguf"),
    (16, 0, "codellama-7b-instruct.Q4_K_M.gguf"),
    (64, 4, "codellama-7b-instruct.Q4_K_M.gguf"),
    (8, 0, FALLBACK_MODEL),
])
def test_recommend_model_tiers(ram, vram, expected):
    assert recommend_model(HardwareInfo(ram_gb=ram, vram_gb=vram)) == expected


def test_high_end_workstation():
    hardware = HardwareInfo(
        cpu="AMD Ryzen 7 7700X",
        ram_gb=32,
        gpu="NVIDIA RTX 4070",
        vram_gb=16,
        os="windows",
        cores=8,
        threads=16,
    )
    assert recommend_model(hardware) == "deepseek-coder-33b-instruct.Q4_K_M.gguf"
