"""
Support code imported by the generated wrappers.
"""
