from .client import TranscriptParserClient, ParseResult
