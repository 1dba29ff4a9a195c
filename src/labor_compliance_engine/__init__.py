"""Labor compliance validation engine.

Validates leave, overtime, and business-trip submissions against labor
regulations and returns a bilingual, severity-graded verdict.
"""

__version__ = "0.1.0"
