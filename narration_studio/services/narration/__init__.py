"""Narration synchronization service.

This service keeps slide narration and slide audio consistent:
- saving human recordings as protected custom audio
- editing narration text in deck documents
- generating audio through a speech synthesis provider
- reporting each slide's audio status
"""

__version__ = "1.0.0"
