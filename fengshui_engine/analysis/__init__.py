"""
Personal element analysis: rule resolution, guidance text, focus-area advice.
"""
