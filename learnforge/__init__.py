"""
LearnForge - concept mastery engine.

Decomposes learning material into a dependency-ordered set of concepts and
drives each concept through four progressively harder comprehension checks.
"""

__version__ = "0.1.0"
