# ==== BUSINESS LOGIC PACKAGE ==== #

"""
Business logic package for domain rules.

Holds the supported industries and their keyword vocabularies used by the
subject line heuristics.
"""
