# ==== SUBJECT ANALYZER PACKAGE ==== #

"""
Email subject line analyzer service.

Scores subject lines with industry-aware heuristics and augments the result
with suggestions from an OpenAI-compatible text-generation API, guarded by
rate limiting, response caching and a bounded admission gate.
"""

__version__ = "0.1.0"
