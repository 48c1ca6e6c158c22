"""
HTTP surface for the brag list builder.
"""
