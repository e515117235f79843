from typing import Optional
from fastapi import Depends, Header

from paperhub.config import config
from paperhub.exceptions import AdminRequiredError, NotAuthenticatedError
from paperhub.models.identity import Identity
from paperhub.services.answer_service import WorkspaceService
from paperhub.services.extraction_service import ExtractionGateway
from paperhub.services.paper_service import PaperService
from paperhub.services.university_service import UniversityService
from paperhub.store.base import DocumentStore
from paperhub.store.factory import create_store

# Singletons, created on first use
_store = None
_gateway = None


def get_store() -> DocumentStore:
    """Dependency injection for the document store"""
    global _store
    if _store is None:
        _store = create_store()
    return _store


def get_extraction_gateway() -> ExtractionGateway:
    """Dependency injection for the extraction gateway"""
    global _gateway
    if _gateway is None:
        _gateway = ExtractionGateway.from_config()
    return _gateway


def get_paper_service(store: DocumentStore = Depends(get_store)) -> PaperService:
    return PaperService(store)


def get_university_service(store: DocumentStore = Depends(get_store)) -> UniversityService:
    return UniversityService(store)


def get_workspace_service(papers: PaperService = Depends(get_paper_service)) -> WorkspaceService:
    return WorkspaceService(papers)


def get_current_identity(
    x_user_uid: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_user_photo: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
) -> Optional[Identity]:
    """
    Identity forwarded by the upstream identity provider.

    A missing or blank uid header means the caller is anonymous.
    """
    if not x_user_uid or not x_user_uid.strip():
        return None
    return Identity(
        uid=x_user_uid.strip(),
        display_name=x_user_name,
        photo_url=x_user_photo,
        email=x_user_email,
    )


def require_identity(identity: Optional[Identity] = Depends(get_current_identity)) -> Identity:
    if identity is None:
        raise NotAuthenticatedError("You must be logged in.")
    return identity


def require_admin(identity: Identity = Depends(require_identity)) -> Identity:
    """Only uids listed in ADMIN_UIDS may edit the university catalogue"""
    if identity.uid not in config.ADMIN_UIDS:
        raise AdminRequiredError("Only administrators can manage universities.")
    return identity
