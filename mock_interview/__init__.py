"""
Mock Interview - interview practice service.

Topic-based question sessions answered by text or voice, graded per answer
and evaluated at the end by an OpenAI- or Perplexity-compatible model.
"""

__version__ = "0.1.0"
