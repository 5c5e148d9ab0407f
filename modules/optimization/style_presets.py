"""Style preset management."""

from __future__ import annotations

import json
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from modules.design.models import TattooStyle


@dataclass(slots=True)
class StylePreset:
    """English description of a tattoo style, injected into prompts."""

    style: TattooStyle
    keyword: str
    description: str


DEFAULT_PRESETS: List[StylePreset] = [
    StylePreset(TattooStyle.REALISM, "realism", "photorealistic shading, lifelike textures and soft gradients"),
    StylePreset(TattooStyle.TRADITIONAL, "American traditional", "bold black outlines, limited saturated palette, classic flash motifs"),
    StylePreset(TattooStyle.NEO_TRADITIONAL, "neo-traditional", "bold outlines with ornate detail, rich tones and illustrative depth"),
    StylePreset(TattooStyle.JAPANESE, "Japanese irezumi", "flowing composition, waves, wind bars and traditional Japanese motifs"),
    StylePreset(TattooStyle.MINIMALIST, "minimalist fine line", "single-needle fine lines, generous negative space, few elements"),
    StylePreset(TattooStyle.DOTWORK, "dotwork geometric", "stippled shading, sacred geometry and precise symmetry"),
    StylePreset(TattooStyle.WATERCOLOR, "watercolor", "soft washes of color, splashes and bleeding edges without hard outlines"),
    StylePreset(TattooStyle.TRIBAL, "tribal", "solid black interlocking shapes and sharp flowing curves"),
    StylePreset(TattooStyle.NEW_SCHOOL, "new school", "cartoonish exaggerated proportions, vivid colors and thick outlines"),
    StylePreset(TattooStyle.BLACKWORK, "blackwork", "heavy solid black fills, high contrast and dark ornamental patterns"),
]

RANDOM_CONCEPTS: List[str] = [
    "一隻在月光下嚎叫的狼",
    "纏繞著玫瑰的匕首",
    "破碎懷錶與飄落的花瓣",
    "巨浪中的錦鯉",
    "戴著皇冠的骷髏",
    "山脈與松林的極簡輪廓",
    "展翅的鳳凰與火焰",
    "指南針與世界地圖",
    "蛇與蓮花的對稱構圖",
    "太空人漂浮在星雲中",
]


class StylePresetRegistry:
    """In-memory registry of style presets keyed by style."""

    def __init__(self, presets: Optional[List[StylePreset]] = None) -> None:
        self._presets: Dict[TattooStyle, StylePreset] = {}
        for preset in presets if presets is not None else DEFAULT_PRESETS:
            self.add(preset)

    def load_from_file(self, path: Path) -> None:
        """Override presets from a JSON list of {style, keyword, description}."""
        if not path.exists():
            return
        with path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        for entry in data:
            style = TattooStyle(entry["style"])
            current = self._presets.get(style)
            self.add(
                StylePreset(
                    style=style,
                    keyword=entry.get("keyword") or (current.keyword if current else style.name.lower()),
                    description=entry.get("description", current.description if current else ""),
                )
            )

    def add(self, preset: StylePreset) -> None:
        """Register or replace a style preset."""
        self._presets[preset.style] = preset

    def list_presets(self) -> List[StylePreset]:
        return list(self._presets.values())

    def get(self, style: TattooStyle) -> StylePreset:
        """Retrieve the preset for a style, falling back to a bare keyword."""
        preset = self._presets.get(style)
        if preset is None:
            return StylePreset(style=style, keyword=style.name.replace("_", " ").lower(), description="")
        return preset


def random_concept(rng: Optional[random.Random] = None) -> str:
    """Pick a concept for the "random inspiration" button."""
    return (rng or random).choice(RANDOM_CONCEPTS)
