# app/utils/chime.py
"""
New-reservation chime: three ascending sine tones (C5, E5, G5), ~0.6s total.
Each tone decays exponentially from its start volume to 0.01.
Rendered to 16-bit mono PCM WAV for the console to play.
"""

import io
import math
import struct
import wave
from dataclasses import dataclass

SAMPLE_RATE = 22050
_DECAY_FLOOR = 0.01


@dataclass(frozen=True)
class Tone:
    frequency: float   # Hz
    start: float       # seconds from cue start
    duration: float    # seconds
    volume: float      # 0..1 at tone start

    @property
    def end(self) -> float:
        return self.start + self.duration


def synthesize_chime(note_seconds: float = 0.18, gap_seconds: float = 0.03,
                     volume: float = 0.35) -> list[Tone]:
    tones = []
    start = 0.0
    for freq in (523.25, 659.25, 783.99):
        tones.append(Tone(frequency=freq, start=round(start, 4), duration=note_seconds, volume=volume))
        start += note_seconds + gap_seconds
    return tones


def chime_duration(tones: list[Tone]) -> float:
    return max((t.end for t in tones), default=0.0)


def tone_gain(tone: Tone, t: float) -> float:
    """Gain of `tone` at `t` seconds after the tone starts (exponential ramp to the floor)."""
    if t < 0 or t >= tone.duration:
        return 0.0
    return tone.volume * (_DECAY_FLOOR / tone.volume) ** (t / tone.duration)


def render_chime_wav(tones: list[Tone] | None = None, sample_rate: int = SAMPLE_RATE) -> bytes:
    tones = tones or synthesize_chime()
    total = int(math.ceil(chime_duration(tones) * sample_rate))
    samples = [0.0] * total

    for tone in tones:
        first = int(tone.start * sample_rate)
        count = int(tone.duration * sample_rate)
        for i in range(count):
            idx = first + i
            if idx >= total:
                break
            t = i / sample_rate
            samples[idx] += tone_gain(tone, t) * math.sin(2 * math.pi * tone.frequency * t)

    frames = b"".join(
        struct.pack("<h", int(max(-1.0, min(1.0, s)) * 32767)) for s in samples
    )
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(frames)
    return buf.getvalue()
