"""
Swappable backends: grading, session store, credentials, recording storage,
speech and media.
"""
