"""Image generation providers.

Each provider exposes `async generate(prompt_text) -> list[ContentPart]`
and raises on failure; none of them retry.
"""
