"""
Firebase Stores for User Transcripts and Plans

Per-user documents in Firestore, keyed by the authenticated user id:
- transcripts/{user_id}: {"courses": [...rows], "updated_at": ...}
- plans/{user_id}:       {"semesters": [{"items": [...slots]}], "updated_at": ...}

Firestore rejects nested arrays, so each plan semester is wrapped in an
object. Reads go through the Redis cache when it is available.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Any, Tuple

from core.config import get_firestore_client, initialize_firebase
from core.models import Plan, TranscriptAttempt, plan_to_list
from services.cache import get_cache, is_cache_available
from services.catalog import coerce_plan


@dataclass
class StoreResult:
    """Outcome of a store write or delete"""
    ok: bool
    message: str = ""


def encode_plan(plan: Plan) -> Dict[str, Any]:
    """Plan -> Firestore document body"""
    return {"semesters": [{"items": items} for items in plan_to_list(plan)]}


def decode_plan(document: Dict[str, Any]) -> Plan:
    """Firestore document body -> Plan; malformed entries are coerced"""
    semesters = document.get("semesters")
    if isinstance(semesters, list):
        semesters = [
            s.get("items", s) if isinstance(s, dict) and "items" in s else s
            for s in semesters
        ]
    return coerce_plan(semesters)


class _UserDocumentStore:
    """Shared Firestore plumbing for one-document-per-user collections"""

    collection_name = ""
    label = ""

    def __init__(self, use_cache: bool = True):
        self.db = get_firestore_client()
        self._use_cache = use_cache and is_cache_available()
        self._cache = get_cache() if self._use_cache else None

    def _doc(self, user_id: str):
        return self.db.collection(self.collection_name).document(self._sanitize_doc_id(user_id))

    def _read(self, user_id: str) -> Tuple[Dict[str, Any], bool]:
        doc = self._doc(user_id).get()
        if not doc.exists:
            return {}, False
        return doc.to_dict() or {}, True

    def _write(self, user_id: str, body: Dict[str, Any]) -> StoreResult:
        body = dict(body)
        body["updated_at"] = datetime.utcnow().isoformat()
        try:
            self._doc(user_id).set(body)
        except Exception as e:
            print(f"[STORE] Error storing {self.label} for {user_id}: {e}")
            return StoreResult(ok=False, message=str(e))
        self._invalidate(user_id)
        return StoreResult(ok=True, message=f"{self.label.capitalize()} stored")

    def delete(self, user_id: str) -> StoreResult:
        """Delete the user's document"""
        try:
            self._doc(user_id).delete()
        except Exception as e:
            print(f"[STORE] Error deleting {self.label} for {user_id}: {e}")
            return StoreResult(ok=False, message=str(e))
        self._invalidate(user_id)
        return StoreResult(ok=True, message=f"{self.label.capitalize()} deleted")

    def _invalidate(self, user_id: str):
        raise NotImplementedError

    def _sanitize_doc_id(self, doc_id: str) -> str:
        """
        Sanitize a string to be used as a Firestore document ID.

        Firestore document IDs cannot contain forward slashes.
        """
        return doc_id.replace("/", "-")


class TranscriptStore(_UserDocumentStore):
    """Stored transcript rows of each user."""

    collection_name = "transcripts"
    label = "transcript"

    def get(self, user_id: str) -> Tuple[List[TranscriptAttempt], bool]:
        """
        Load a user's stored transcript.

        Returns:
            (attempts, found). A missing document is ([], False).

        Raises:
            Exception: Firestore read errors are not caught here
        """
        if self._use_cache and self._cache:
            cached = self._cache.get_transcript(user_id)
            if cached is not None:
                return [TranscriptAttempt.from_dict(row) for row in cached], True

        body, found = self._read(user_id)
        if not found:
            return [], False

        rows = [row for row in body.get("courses") or [] if isinstance(row, dict)]
        if self._use_cache and self._cache:
            self._cache.set_transcript(user_id, rows)
        return [TranscriptAttempt.from_dict(row) for row in rows], True

    def put(self, user_id: str, courses: List[TranscriptAttempt]) -> StoreResult:
        """Replace a user's stored transcript"""
        return self._write(user_id, {"courses": [c.to_dict() for c in courses]})

    def _invalidate(self, user_id: str):
        if self._use_cache and self._cache:
            self._cache.invalidate_transcript(user_id)


class PlanStore(_UserDocumentStore):
    """Stored degree plan of each user."""

    collection_name = "plans"
    label = "plan"

    def get(self, user_id: str) -> Tuple[Plan, bool]:
        """
        Load a user's stored plan.

        Returns:
            (plan, found). A missing document is ((), False).
        """
        if self._use_cache and self._cache:
            cached = self._cache.get_plan(user_id)
            if cached is not None:
                return decode_plan(cached), True

        body, found = self._read(user_id)
        if not found:
            return (), False

        document = {"semesters": body.get("semesters", [])}
        if self._use_cache and self._cache:
            self._cache.set_plan(user_id, document)
        return decode_plan(document), True

    def put(self, user_id: str, plan: Plan) -> StoreResult:
        """Replace a user's stored plan"""
        return self._write(user_id, encode_plan(plan))

    def _invalidate(self, user_id: str):
        if self._use_cache and self._cache:
            self._cache.invalidate_plan(user_id)


def get_transcript_store() -> TranscriptStore:
    """Get an instance of the transcript store."""
    initialize_firebase()
    return TranscriptStore()


def get_plan_store() -> PlanStore:
    """Get an instance of the plan store."""
    initialize_firebase()
    return PlanStore()
