"""
Transcript Parsing Service Client

Async HTTP client for the external transcript parser. The parser accepts a
base64-encoded PDF and answers with:

    {"courses": [{semester, code, name, credits, grade}, ...],
     "error": "",
     "debug": "..."}

An empty course list with no error means the document held no course rows.
Transport failures, non-200 answers and unreadable bodies are reported
through ParseResult.error; the client never raises for them.
"""

import asyncio
import base64
import aiohttp
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.config import PARSER_API_URL, PARSER_TIMEOUT_SECONDS
from core.models import TranscriptAttempt

USER_AGENT = "DegreePlanner/1.0 (Transcript Upload)"

REQUIRED_ROW_FIELDS = ("semester", "code")


@dataclass
class ParseResult:
    """Parser answer: extracted rows, or an error text"""
    courses: List[TranscriptAttempt] = field(default_factory=list)
    error: str = ""
    debug: str = ""

    @property
    def ok(self) -> bool:
        return not self.error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "courses": [c.to_dict() for c in self.courses],
            "error": self.error,
            "debug": self.debug
        }


class TranscriptParserClient:
    """
    Client for the transcript parsing service.

    Usage:
        async with TranscriptParserClient() as client:
            result = await client.parse(pdf_bytes)
    """

    def __init__(self, url: str = PARSER_API_URL, timeout: int = PARSER_TIMEOUT_SECONDS):
        self.url = url
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None
        self._owns_session = False

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def _ensure_session(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout, connect=5),
                headers={
                    'User-Agent': USER_AGENT,
                    'Accept': 'application/json',
                }
            )
            self._owns_session = True

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None
        self._owns_session = False

    async def parse(self, file_bytes: bytes) -> ParseResult:
        """
        Send a transcript PDF to the parser.

        Args:
            file_bytes: Raw PDF bytes

        Returns:
            ParseResult with the extracted rows or the error text
        """
        payload = {"pdf_base64": base64.b64encode(file_bytes).decode("ascii")}
        print(f"[PARSER] Sending {len(file_bytes)} bytes to {self.url}")

        await self._ensure_session()
        try:
            async with self.session.post(self.url, json=payload) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    print(f"[PARSER] HTTP {resp.status}: {text[:200]}")
                    return ParseResult(error=f"Parser returned HTTP {resp.status}: {text}")

                data = await resp.json(content_type=None)

        except aiohttp.ClientError as e:
            print(f"[PARSER] Request failed: {e}")
            return ParseResult(error=str(e) or "Transcript parser unreachable")
        except asyncio.TimeoutError:
            print(f"[PARSER] Timed out after {self.timeout}s")
            return ParseResult(error="Transcript parser timed out")
        except ValueError as e:
            print(f"[PARSER] Unreadable response: {e}")
            return ParseResult(error=f"Unreadable parser response: {e}")

        return self._to_result(data)

    def _to_result(self, data: Any) -> ParseResult:
        if not isinstance(data, dict):
            return ParseResult(error="Unreadable parser response")

        error = str(data.get("error") or "")
        debug = str(data.get("debug") or "")
        rows = data.get("courses") or []
        if not isinstance(rows, list):
            return ParseResult(error="Unreadable parser response: courses is not a list", debug=debug)

        courses = []
        for row in rows:
            if not self.validate_row(row):
                print(f"[PARSER] Skipping incomplete row: {row!r}")
                continue
            courses.append(TranscriptAttempt.from_dict(row))

        print(f"[PARSER] Parsed {len(courses)} courses" + (f" (error: {error})" if error else ""))
        return ParseResult(courses=courses, error=error, debug=debug)

    @staticmethod
    def validate_row(row: Any) -> bool:
        """A row needs at least a semester and a course code"""
        if not isinstance(row, dict):
            return False
        return all(row.get(name) for name in REQUIRED_ROW_FIELDS)
