from .openai_client import (
    JSONCompletionClient,
    OpenAIJSONClient,
    RequestMetadata,
    ResponseFormatError,
    parse_json_object,
)

__all__ = [
    "JSONCompletionClient",
    "OpenAIJSONClient",
    "RequestMetadata",
    "ResponseFormatError",
    "parse_json_object",
]
