from .compress import compress_context
from .render import compile_prompt

__all__ = ["compile_prompt", "compress_context"]
