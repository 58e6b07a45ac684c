"""
Utility Modules for tts-gateway.

    - mp3.py: MP3 duration estimation from MPEG frame headers
    - retry.py: Retry with exponential backoff (tenacity)
    - text.py: Character counting for billing and limits
    - timeit.py: Performance measurement utilities
"""
