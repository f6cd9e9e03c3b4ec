"""Bind per-direction frame sequences into animated icon states."""

from __future__ import annotations

from dataclasses import dataclass, replace
from itertools import cycle, islice
from typing import Sequence, TypeVar

from PIL import Image

from bitslice.config import Animation

T = TypeVar("T")


@dataclass
class FrameGroup:
    """One named icon state handed to the container writer.

    ``images`` is frame-major: every direction of frame 0, then every
    direction of frame 1, and so on.
    """

    name: str
    dirs: int
    frames: int
    images: list[Image.Image]
    delays: list[float] | None = None
    rewind: bool = False

    def frame(self, index: int) -> list[Image.Image]:
        """All directions of one frame."""
        return self.images[index * self.dirs : (index + 1) * self.dirs]


def repeat_for(values: Sequence[T], count: int) -> list[T]:
    """Cycle *values* until *count* items are produced.

    ``repeat_for([10, 20], 5) == [10, 20, 10, 20, 10]``
    """
    return list(islice(cycle(values), count))


def _same_frame(a: list[Image.Image], b: list[Image.Image]) -> bool:
    return all(x.tobytes() == y.tobytes() for x, y in zip(a, b))


def dedupe_frames(group: FrameGroup) -> FrameGroup:
    """Merge consecutive identical frames, adding their delays together."""
    if group.frames <= 1 or group.delays is None:
        return group

    frames: list[list[Image.Image]] = []
    delays: list[float] = []
    for index, delay in enumerate(group.delays):
        current = group.frame(index)
        if frames and _same_frame(frames[-1], current):
            delays[-1] += delay
            continue
        frames.append(current)
        delays.append(delay)

    return replace(
        group,
        frames=len(frames),
        images=[image for frame in frames for image in frame],
        delays=delays,
    )


def bind_frames(
    name: str,
    per_direction: Sequence[Sequence[Image.Image]],
    animation: Animation | None,
) -> FrameGroup:
    """Interleave each direction's frame list into one frame group.

    Every entry of *per_direction* must hold the same number of frames.
    """
    frame_count = len(per_direction[0])
    images = [per_direction[d][f] for f in range(frame_count) for d in range(len(per_direction))]

    delays = None
    rewind = False
    if animation is not None:
        delays = repeat_for(animation.delays, frame_count)
        rewind = animation.rewind

    group = FrameGroup(
        name=name,
        dirs=len(per_direction),
        frames=frame_count,
        images=images,
        delays=delays,
        rewind=rewind,
    )
    return dedupe_frames(group)
