"""
Services package.

Question bank and selection, grading prompts, the session orchestrator,
the voice answer flow and the per-user session manager.
"""
