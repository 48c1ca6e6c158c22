"""
Shared infrastructure: configuration, logging, errors, LLM access, JSON repair.
"""
