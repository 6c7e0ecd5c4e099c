from __future__ import annotations

from idphotoshop.core.models import GenerationOptions

# Labels understood by the generation service.
SIZE_LABELS = {
    "1inch": "1寸",
    "2inch": "2寸",
    "passport": "护照",
    "custom": "自定义尺寸",
}

LIGHTING_LABELS = {
    "natural": "自然光",
    "studio": "专业工作室灯光",
    "bright": "明亮均匀的光线",
}

STYLE_LABELS = {
    "professional": "商务专业风格",
    "casual": "休闲自然风格",
    "traditional": "传统正式风格",
}

QUALITY_SUFFIX = "高质量，清晰度高，适合官方使用"


def build_prompt(options: GenerationOptions) -> str:
    """Deterministic generation prompt used when the user gave no free text."""
    size = SIZE_LABELS[options.size]
    style = STYLE_LABELS[options.style]
    lighting = LIGHTING_LABELS[options.lighting]
    return f"生成{size}证件照，{style}，{lighting}，背景色为{options.background_color}，{QUALITY_SUFFIX}"
