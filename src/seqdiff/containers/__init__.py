"""
Containers summarising alignments.
"""
