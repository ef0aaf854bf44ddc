"""Session descriptors sent to the realtime API when a call is created or accepted."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from config.settings import RealtimeConfig


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class NoiseReduction(_Frozen):
    type: str


class AudioInput(_Frozen):
    noise_reduction: NoiseReduction


class AudioOutput(_Frozen):
    voice: str


class AudioConfig(_Frozen):
    input: AudioInput
    output: AudioOutput


class VideoInput(_Frozen):
    enabled: Literal[True] = True


class VideoConfig(_Frozen):
    input: VideoInput = VideoInput()


class SessionDescriptor(_Frozen):
    type: Literal["realtime"] = "realtime"
    model: str
    instructions: str
    audio: AudioConfig
    video: VideoConfig | None = None

    def to_payload(self) -> dict[str, Any]:
        # `video` is omitted entirely rather than sent as null.
        return self.model_dump(exclude_none=True)


def build_session(cfg: RealtimeConfig, *, video_enabled: bool = False) -> SessionDescriptor:
    audio = AudioConfig(
        input=AudioInput(noise_reduction=NoiseReduction(type=cfg.noise_reduction)),
        output=AudioOutput(voice=cfg.voice),
    )
    return SessionDescriptor(
        model=cfg.model,
        instructions=cfg.instructions,
        audio=audio,
        video=VideoConfig() if video_enabled else None,
    )
