"""
Brag list builder: turns completed tasks into credible achievement statements.
"""
