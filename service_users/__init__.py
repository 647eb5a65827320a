"""
Users Service package for the Users Access Layer.
"""
