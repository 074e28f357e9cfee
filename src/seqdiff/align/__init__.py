"""
Alignment engines: pairwise dynamic programming, distances and partial-order alignment.
"""
