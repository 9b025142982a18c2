"""
Exceptions raised by the audio comic pipeline.
The layout core never raises; these cover generation and storage.
"""


class PipelineError(Exception):
    pass


class ScriptGenerationError(PipelineError):
    """
    Raised when the LLM returns a script chunk that cannot be used,
    e.g. the first chunk arrives without an art style.
    """

    def __init__(self, chunk_number: int, message: str = None):
        self.chunk_number = chunk_number
        self.message = message or f"Chunk {chunk_number} failed"
        super().__init__(f"Chunk {chunk_number}: {self.message}")


class ArticleNotFoundError(PipelineError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Article not found: {slug}")
