"""
Transfer pipeline: lifecycle rules and the orchestrator that walks them.
"""
