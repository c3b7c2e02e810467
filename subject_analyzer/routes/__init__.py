# ==== ROUTES PACKAGE ==== #

"""
Routes package for API endpoints.

Contains the analysis, rate limit, performance and health endpoints.
"""
