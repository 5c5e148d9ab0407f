"""Tattoo design request and result types."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional


class TattooStyle(str, Enum):
    """Artistic styles offered in the form."""

    REALISM = "寫實風格 (Realism)"
    TRADITIONAL = "美式傳統 (Traditional)"
    NEO_TRADITIONAL = "新傳統 (Neo Traditional)"
    JAPANESE = "日式傳統 (Japanese)"
    MINIMALIST = "極簡線條 (Minimalist)"
    DOTWORK = "點刺幾何 (Dotwork)"
    WATERCOLOR = "水彩渲染 (Watercolor)"
    TRIBAL = "部落圖騰 (Tribal)"
    NEW_SCHOOL = "新美式 (New School)"
    BLACKWORK = "黑工/暗黑 (Blackwork)"


class BodyPart(str, Enum):
    """Placement of the tattoo."""

    ARM = "手臂"
    FOREARM = "前臂"
    CHEST = "胸口"
    BACK = "背部"
    LEG = "腿部"
    THIGH = "大腿"
    HAND = "手部"
    NECK = "頸部"


class Complexity(str, Enum):
    SIMPLE = "簡單"
    MEDIUM = "中等"
    COMPLEX = "複雜"


class ColorMode(str, Enum):
    MONOCHROME = "黑白灰階"
    COLOR = "彩色"


class ViewMode(str, Enum):
    """How the result is presented: a flat flash sheet or a mock-up on skin."""

    FLASH_SHEET = "純圖稿 (Flash Sheet)"
    BODY_PREVIEW = "實穿模擬 (Body Preview)"


DEFAULT_VIEW_MODE = ViewMode.FLASH_SHEET

# English names used when talking to the models.
BODY_PART_ENGLISH: Dict[BodyPart, str] = {
    BodyPart.ARM: "upper arm",
    BodyPart.FOREARM: "forearm",
    BodyPart.CHEST: "chest",
    BodyPart.BACK: "back",
    BodyPart.LEG: "leg",
    BodyPart.THIGH: "thigh",
    BodyPart.HAND: "hand",
    BodyPart.NECK: "neck",
}

COMPLEXITY_ENGLISH: Dict[Complexity, str] = {
    Complexity.SIMPLE: "simple, few elements, bold clean lines",
    Complexity.MEDIUM: "moderate detail",
    Complexity.COMPLEX: "highly detailed, intricate linework and shading",
}

COLOR_ENGLISH: Dict[ColorMode, str] = {
    ColorMode.MONOCHROME: "black and grey ink only",
    ColorMode.COLOR: "full color ink",
}


@dataclass(frozen=True, slots=True)
class DesignRequest:
    """Snapshot of the form taken when the user submits."""

    prompt: str
    style: TattooStyle = TattooStyle.TRADITIONAL
    body_part: BodyPart = BodyPart.ARM
    complexity: Complexity = Complexity.MEDIUM
    color: ColorMode = ColorMode.MONOCHROME
    view_mode: ViewMode = DEFAULT_VIEW_MODE
    reference_image: Optional[str] = None

    def __post_init__(self) -> None:
        # Form widgets hand over plain labels; store enum members.
        object.__setattr__(self, "style", TattooStyle(self.style))
        object.__setattr__(self, "body_part", BodyPart(self.body_part))
        object.__setattr__(self, "complexity", Complexity(self.complexity))
        object.__setattr__(self, "color", ColorMode(self.color))
        object.__setattr__(self, "view_mode", ViewMode(self.view_mode))

    def with_prompt(self, prompt: str) -> "DesignRequest":
        return replace(self, prompt=prompt)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "prompt": self.prompt,
            "style": self.style.value,
            "bodyPart": self.body_part.value,
            "complexity": self.complexity.value,
            "color": self.color.value,
            "viewMode": self.view_mode.value,
        }
        if self.reference_image:
            payload["referenceImage"] = self.reference_image
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DesignRequest":
        """Build a request from its persisted form.

        Raises:
            ValueError: if a field holds a value outside its enum.
            KeyError: if a required field is missing.
        """
        return cls(
            prompt=str(data["prompt"]),
            style=TattooStyle(data["style"]),
            body_part=BodyPart(data["bodyPart"]),
            complexity=Complexity(data["complexity"]),
            color=ColorMode(data["color"]),
            view_mode=ViewMode(data.get("viewMode") or DEFAULT_VIEW_MODE.value),
            reference_image=data.get("referenceImage") or None,
        )


@dataclass(frozen=True, slots=True)
class GeneratedDesign:
    """A successful generation. Never mutated once created."""

    id: str
    image_url: str
    original_request: DesignRequest
    refined_prompt: str
    timestamp: int  # epoch milliseconds

    @property
    def download_name(self) -> str:
        return f"inkspire-{self.id}.png"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "imageUrl": self.image_url,
            "originalRequest": self.original_request.to_dict(),
            "refinedPrompt": self.refined_prompt,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedDesign":
        return cls(
            id=str(data["id"]),
            image_url=str(data["imageUrl"]),
            original_request=DesignRequest.from_dict(data["originalRequest"]),
            refined_prompt=str(data.get("refinedPrompt") or ""),
            timestamp=int(data.get("timestamp") or 0),
        )
