"""
Interview Copilot

Answers questions raised in a live conversation, deciding per question
whether the language model can answer directly or must be grounded in
retrieved documents and web results.
"""

__version__ = "0.1.0"
