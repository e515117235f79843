"""
Typed access to the ``papers`` and ``paperAnswers`` collections.

Store errors are logged and re-raised as PersistenceError with a generic
user message; callers keep their local state and can retry.
"""
import logging
from typing import Callable, Dict, List, Optional

from paperhub.config import config
from paperhub.exceptions import NotFoundError, PersistenceError
from paperhub.models.answer import AnswerDoc, AnswerPayload, AnswerQuestion
from paperhub.models.paper import PaperDoc, PaperPayload
from paperhub.store.base import SERVER_TIMESTAMP, DocumentMissingError, DocumentStore, Query

logger = logging.getLogger(__name__)

PAPERS = "papers"
ANSWERS = "paperAnswers"


class PaperService:

    def __init__(self, store: DocumentStore):
        self.store = store

    # ===== PAPERS (questions) =====

    def _user_papers_query(self, uid: str) -> Query:
        return Query(PAPERS).where("ownerUid", uid).order("createdAt", descending=True)

    async def get_user_papers(self, uid: str) -> List[PaperDoc]:
        try:
            docs = await self.store.query(self._user_papers_query(uid))
        except Exception as e:
            logger.error(f"Error loading papers for {uid}: {e}", exc_info=True)
            raise PersistenceError("Failed to load your papers.", details=str(e))
        return [PaperDoc.model_validate(d) for d in docs]

    async def subscribe_user_papers(self, uid: str, callback: Callable[[List[PaperDoc]], None]) -> Callable[[], None]:
        """Live list of a user's papers; returns the unsubscribe function"""
        return await self.store.subscribe(
            self._user_papers_query(uid),
            lambda docs: callback([PaperDoc.model_validate(d) for d in docs]),
        )

    async def create_paper(self, payload: PaperPayload) -> str:
        data = payload.model_dump(mode="json")
        data["createdAt"] = SERVER_TIMESTAMP
        data["updatedAt"] = SERVER_TIMESTAMP
        try:
            paper_id = await self.store.add(PAPERS, data)
        except Exception as e:
            logger.error(f"Error creating paper: {e}", exc_info=True)
            raise PersistenceError("Failed to save paper.", details=str(e))
        logger.info(f"Created {payload.status} paper {paper_id} for {payload.ownerUid}")
        return paper_id

    async def update_paper(self, paper_id: str, payload: PaperPayload) -> None:
        data = payload.model_dump(mode="json")
        data["updatedAt"] = SERVER_TIMESTAMP
        try:
            await self.store.update(PAPERS, paper_id, data)
        except DocumentMissingError:
            raise NotFoundError(f"Paper {paper_id} not found")
        except Exception as e:
            logger.error(f"Error updating paper {paper_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to save paper.", details=str(e))
        logger.info(f"Updated paper {paper_id} ({payload.status})")

    async def get_paper_by_id(self, paper_id: str) -> Optional[PaperDoc]:
        try:
            doc = await self.store.get(PAPERS, paper_id)
        except Exception as e:
            logger.error(f"Error loading paper {paper_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load paper.", details=str(e))
        return PaperDoc.model_validate(doc) if doc else None

    async def get_published_papers(self, limit_count: int = None) -> List[PaperDoc]:
        limit_count = limit_count or config.PUBLISHED_PAPERS_LIMIT
        query = (
            Query(PAPERS)
            .where("status", "published")
            .order("createdAt", descending=True)
            .take(limit_count)
        )
        try:
            docs = await self.store.query(query)
        except Exception as e:
            logger.error(f"Error loading published papers: {e}", exc_info=True)
            raise PersistenceError("Failed to load papers.", details=str(e))
        return [PaperDoc.model_validate(d) for d in docs]

    async def search_published_papers(self, term: str, limit_count: int = None) -> List[PaperDoc]:
        """
        Prefix search over course code, course name and university name.

        Codes are stored upper-case and names lower-case by convention, so
        the term is cased to match each field. Results are merged by id in
        code, name, university order and cut to ``limit_count``.
        """
        limit_count = limit_count or config.SEARCH_LIMIT
        trimmed = (term or "").strip()
        if not trimmed:
            return await self.get_published_papers(limit_count)

        published = Query(PAPERS).where("status", "published").take(limit_count)
        queries = [
            published.prefix("courseCode", trimmed.upper()),
            published.prefix("courseName", trimmed.lower()),
            published.prefix("universityName", trimmed.lower()),
        ]

        by_id: Dict[str, PaperDoc] = {}
        try:
            for query in queries:
                for doc in await self.store.query(query):
                    by_id.setdefault(doc["id"], PaperDoc.model_validate(doc))
        except Exception as e:
            logger.error(f"Error searching papers for '{trimmed}': {e}", exc_info=True)
            raise PersistenceError("Failed to search papers.", details=str(e))
        return list(by_id.values())[:limit_count]

    # ===== ANSWER DOCS (workspace) =====

    async def get_user_answer_docs(self, uid: str) -> List[AnswerDoc]:
        query = Query(ANSWERS).where("ownerUid", uid).order("createdAt", descending=True)
        try:
            docs = await self.store.query(query)
        except Exception as e:
            logger.error(f"Error loading workspace for {uid}: {e}", exc_info=True)
            raise PersistenceError("Failed to load your workspace.", details=str(e))
        return [AnswerDoc.model_validate(d) for d in docs]

    async def get_answer_doc_by_id(self, answer_id: str) -> Optional[AnswerDoc]:
        try:
            doc = await self.store.get(ANSWERS, answer_id)
        except Exception as e:
            logger.error(f"Error loading answer doc {answer_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load answers.", details=str(e))
        return AnswerDoc.model_validate(doc) if doc else None

    async def find_answer_for_paper(self, owner_uid: str, paper_id: str) -> Optional[str]:
        """Id of the user's answer doc for a paper, if any"""
        query = Query(ANSWERS).where("ownerUid", owner_uid).where("paperId", paper_id).take(1)
        try:
            docs = await self.store.query(query)
        except Exception as e:
            logger.error(f"Error checking workspace for {owner_uid}/{paper_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to check your workspace.", details=str(e))
        return docs[0]["id"] if docs else None

    async def user_has_answer_for_paper(self, owner_uid: str, paper_id: str) -> bool:
        return await self.find_answer_for_paper(owner_uid, paper_id) is not None

    async def create_answer_doc(self, payload: AnswerPayload) -> str:
        data = payload.model_dump(mode="json")
        data["createdAt"] = SERVER_TIMESTAMP
        data["updatedAt"] = SERVER_TIMESTAMP
        try:
            answer_id = await self.store.add(ANSWERS, data)
        except Exception as e:
            logger.error(f"Error creating answer doc: {e}", exc_info=True)
            raise PersistenceError("Failed to save questions to workspace.", details=str(e))
        logger.info(f"Created answer doc {answer_id} for paper {payload.paperId}")
        return answer_id

    async def update_answer_doc(
        self,
        answer_id: str,
        answers: Optional[List[AnswerQuestion]] = None,
        title: Optional[str] = None,
    ) -> None:
        """Only ``answers`` and ``title`` are writable after adoption"""
        clean = {"updatedAt": SERVER_TIMESTAMP}
        if answers is not None:
            clean["answers"] = [a.model_dump(mode="json") for a in answers]
        if title is not None:
            clean["title"] = title
        try:
            await self.store.update(ANSWERS, answer_id, clean)
        except DocumentMissingError:
            raise NotFoundError(f"Answer doc {answer_id} not found")
        except Exception as e:
            logger.error(f"Error saving answers {answer_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to save answers.", details=str(e))

    async def delete_answer_doc(self, answer_id: str) -> None:
        try:
            await self.store.delete(ANSWERS, answer_id)
        except Exception as e:
            logger.error(f"Error deleting answer doc {answer_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to delete answers.", details=str(e))
        logger.info(f"Deleted answer doc {answer_id}")

