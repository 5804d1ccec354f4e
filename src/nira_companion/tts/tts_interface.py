from typing import Protocol, runtime_checkable


@runtime_checkable
class TTSInterface(Protocol):
    """Speech synthesis backend.

    ``synthesize`` returns base64 encoded audio for already cleaned text of
    bounded length, and raises ``ProviderFailure`` when no audio comes back.
    """

    name: str

    async def synthesize(self, text: str, language_code: str, speaker: str) -> str: ...
