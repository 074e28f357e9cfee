"""
Core data types: sequence coercion and scoring policies.
"""
