"""Notifications the compiler emits around each build pass.

Every pass produces exactly one ``BuildStarting`` followed by exactly one
``BuildFinished``; passes never interleave.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from haul.compiler import Stats


@dataclass(frozen=True)
class BuildStarting:
    had_issues: bool


@dataclass(frozen=True)
class BuildFinished:
    stats: "Stats"


BuildEvent = Union[BuildStarting, BuildFinished]
