"""Lanlearner: vocabulary and knowledge-point study tool with spaced repetition."""

from lanlearner.consts import VERSION

__version__ = VERSION
