"""
Media Capture Providers.
"""
from mock_interview.providers.media.base import MediaDevice
from mock_interview.providers.media.capture import MediaCapture
from mock_interview.providers.media.client_stream import ClientStreamDevice

__all__ = [
    "MediaDevice",
    "MediaCapture",
    "ClientStreamDevice",
]
