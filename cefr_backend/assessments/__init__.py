"""
Assessment modules for the CEFR placement backend.
"""
