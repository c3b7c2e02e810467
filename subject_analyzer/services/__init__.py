# ==== SERVICES PACKAGE ==== #

"""
Services package for business logic and external integrations.

Contains the subject line scorer, the AI client and suggestion extraction,
the response cache, the performance recorder and the request orchestrator.
"""
