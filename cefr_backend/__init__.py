"""
CEFR Placement Scoring Backend

Scores submitted English placement tests, recommends a CEFR level
(A1 to C2), and keeps learner profiles and curricula in step with the
results.
"""

__version__ = "0.1.0"
