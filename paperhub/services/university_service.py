import logging
from typing import List, Optional

from paperhub.exceptions import InputError, NotFoundError, PersistenceError
from paperhub.models.university import University
from paperhub.store.base import DocumentMissingError, DocumentStore, Query

logger = logging.getLogger(__name__)

UNIVERSITIES = "universities"


class UniversityService:

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_universities(self) -> List[University]:
        try:
            docs = await self.store.query(Query(UNIVERSITIES).order("name"))
        except Exception as e:
            logger.error(f"Failed to load universities: {e}", exc_info=True)
            raise PersistenceError("Failed to load universities.", details=str(e))
        return [University.model_validate(d) for d in docs]

    async def get_university(self, university_id: str) -> Optional[University]:
        try:
            doc = await self.store.get(UNIVERSITIES, university_id)
        except Exception as e:
            logger.error(f"Failed to load university {university_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load university.", details=str(e))
        return University.model_validate(doc) if doc else None

    async def create_university(self, name: str, courses: Optional[List[str]] = None) -> University:
        name = (name or "").strip()
        if not name:
            raise InputError("University name is required.")
        unique_courses = _dedupe([c.strip() for c in courses or [] if c and c.strip()])
        try:
            university_id = await self.store.add(UNIVERSITIES, {"name": name, "courses": unique_courses})
        except Exception as e:
            logger.error(f"Failed to create university '{name}': {e}", exc_info=True)
            raise PersistenceError("Failed to save university.", details=str(e))
        logger.info(f"Created university {university_id} ({name})")
        return University(id=university_id, name=name, courses=unique_courses)

    async def add_course(self, university_id: str, course: str) -> University:
        course = (course or "").strip()
        if not course:
            raise InputError("Course name is required.")
        university = await self._require(university_id)
        if course in university.courses:
            return university
        courses = university.courses + [course]
        await self._save_courses(university_id, courses)
        return university.model_copy(update={"courses": courses})

    async def remove_course(self, university_id: str, course: str) -> University:
        university = await self._require(university_id)
        courses = [c for c in university.courses if c != course]
        if courses != university.courses:
            await self._save_courses(university_id, courses)
        return university.model_copy(update={"courses": courses})

    async def _require(self, university_id: str) -> University:
        university = await self.get_university(university_id)
        if university is None:
            raise NotFoundError(f"University {university_id} not found")
        return university

    async def _save_courses(self, university_id: str, courses: List[str]) -> None:
        try:
            await self.store.update(UNIVERSITIES, university_id, {"courses": courses})
        except DocumentMissingError:
            raise NotFoundError(f"University {university_id} not found")
        except Exception as e:
            logger.error(f"Failed to update courses for {university_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to save university.", details=str(e))


def _dedupe(values: List[str]) -> List[str]:
    """Drop repeats, keeping first-seen order"""
    return list(dict.fromkeys(values))
