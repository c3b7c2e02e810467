# ==== OBSERVABILITY PACKAGE ==== #

"""
Observability package: structured logging, Prometheus metrics and tracing.
"""
