"""
File importers for the catalog read model.
"""
