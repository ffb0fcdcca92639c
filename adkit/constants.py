"""Project-wide constants and mappings.

This module contains the video/audio provider catalogue, the platform to
aspect-ratio table used to plan video ads, provider fallback routing, and the
Japanese progress labels shown on the campaign dashboard.
"""

# Provider identifiers (keys into the provider health tracker)
ELEVENLABS = "elevenlabs"
KLING = "kling"
RUNWAY = "runway"
HEYGEN = "heygen"

# Provider catalogue: pricing is informational (USD), used for logging only
VIDEO_PROVIDERS: dict[str, dict[str, object]] = {
    KLING: {
        "name": "Kling",
        "cost_per_second": 0.07,
        "max_duration": 10,
        "supported_aspect_ratios": ["16:9", "9:16", "1:1"],
    },
    RUNWAY: {
        "name": "Runway Gen-4",
        "cost_per_second": 0.05,
        "max_duration": 10,
        "supported_aspect_ratios": ["1280:720", "720:1280", "960:960"],
    },
    ELEVENLABS: {
        "name": "ElevenLabs",
        "cost_per_char": 0.00033,
    },
    HEYGEN: {
        "name": "HeyGen",
        "cost_per_minute": 0.5,
        "max_duration": 60,
    },
}

# Image-to-video providers back each other up
FALLBACK_MAP: dict[str, str] = {
    KLING: RUNWAY,
    RUNWAY: KLING,
}

# Platform ID -> aspect ratios its video placements need
PLATFORM_ASPECT_RATIOS: dict[str, list[str]] = {
    "youtube": ["16:9"],
    "instagram_feed": ["1:1"],
    "instagram_story": ["9:16"],
    "tiktok": ["9:16"],
    "line": ["1:1"],
    "x_twitter": ["16:9"],
}

# Kling ratio notation -> Runway pixel ratio notation
KLING_TO_RUNWAY_RATIO: dict[str, str] = {
    "16:9": "1280:720",
    "9:16": "720:1280",
    "1:1": "960:960",
}

DEFAULT_VIDEO_DURATION_SECONDS = 10

# Portrait presenter video for avatar step
AVATAR_DIMENSION = (1080, 1920)

# Progress statuses written to campaigns.progress
STATUS_GENERATING = "generating"
STATUS_COMPLETE = "complete"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"

# Dashboard labels (currentStep) per stage
STEP_LABELS: dict[str, str] = {
    "voiceover": "ナレーション生成中...",
    "video_ad": "動画広告生成中...",
    "cinematic": "シネマティック動画生成中...",
    "avatar": "アバター動画生成中...",
}

LABEL_PIPELINE_COMPLETE = "動画生成完了"
LABEL_PIPELINE_PARTIAL = "一部の動画生成に失敗しました"
LABEL_PIPELINE_FAILED = "動画生成に失敗しました"
