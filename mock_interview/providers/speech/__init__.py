"""
Speech Providers.

Synthesis: Pyttsx3Synthesizer (local), ClientRelaySynthesizer (browser)
Recognition: WhisperRecognizer (local), ClientTranscriptRecognizer (browser)
"""
from mock_interview.providers.speech.adapter import SpeechAdapter
from mock_interview.providers.speech.base import SpeechRecognizer, SpeechSynthesizer
from mock_interview.providers.speech.client_relay import (
    ClientRelaySynthesizer,
    ClientTranscriptRecognizer,
)

__all__ = [
    "SpeechAdapter",
    "SpeechSynthesizer",
    "SpeechRecognizer",
    "ClientRelaySynthesizer",
    "ClientTranscriptRecognizer",
]
