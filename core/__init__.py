"""
Translation job pipeline: job records, queue, orchestrator, workers.
"""
