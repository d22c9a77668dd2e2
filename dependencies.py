"""
Dependency injection setup for stores, repositories and services.

Settings and stores are built once by `create_app` and kept on `app.state`;
repositories and services are cheap and built per request from them, so tests
can swap a store through `app.dependency_overrides` and everything downstream
follows.
"""

import time
from typing import Annotated, Callable, Optional
from fastapi import Depends, Request

from adapters.blob_store import BaseBlobStore, create_blob_store
from adapters.record_store import BaseRecordStore, create_record_store
from config.config import Settings
from repositories.pdf_record_repository import PdfRecordRepository
from repositories.pending_upload_repository import PendingUploadRepository
from services.auth_service import Authenticator, create_authenticator
from services.library_service import LibraryService, create_library_service
from services.rate_limiter import RateLimiter, create_rate_limiter
from services.upload_service import UploadCoordinator, create_upload_coordinator


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def init_app_state(app, settings: Settings) -> None:
    """Attach settings and the configured stores to the app."""
    app.state.settings = settings
    app.state.blob_store = create_blob_store(settings)
    app.state.record_store = create_record_store(settings)


def get_blob_store(request: Request) -> Optional[BaseBlobStore]:
    """App-wide blob store (None when not configured)."""
    return request.app.state.blob_store


def get_record_store(request: Request) -> Optional[BaseRecordStore]:
    """App-wide record store (None when not configured)."""
    return request.app.state.record_store


def get_clock() -> Callable[[], float]:
    """Wall clock used for rate-limit windows."""
    return time.time


BlobStoreDep = Annotated[Optional[BaseBlobStore], Depends(get_blob_store)]
RecordStoreDep = Annotated[Optional[BaseRecordStore], Depends(get_record_store)]
ClockDep = Annotated[Callable[[], float], Depends(get_clock)]


def get_authenticator(settings: SettingsDep) -> Authenticator:
    return create_authenticator(settings)


def get_pdf_record_repository(record_store: RecordStoreDep) -> PdfRecordRepository:
    return PdfRecordRepository(record_store)


def get_pending_upload_repository(record_store: RecordStoreDep, settings: SettingsDep) -> PendingUploadRepository:
    return PendingUploadRepository(record_store, ttl_seconds=settings.presigned_url_expiry_seconds)


def get_rate_limiter(record_store: RecordStoreDep, settings: SettingsDep, clock: ClockDep) -> RateLimiter:
    return create_rate_limiter(record_store, settings, clock=clock)


AuthenticatorDep = Annotated[Authenticator, Depends(get_authenticator)]
PdfRecordRepositoryDep = Annotated[PdfRecordRepository, Depends(get_pdf_record_repository)]
PendingUploadRepositoryDep = Annotated[PendingUploadRepository, Depends(get_pending_upload_repository)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]


def get_upload_coordinator(
    blob_store: BlobStoreDep,
    pending_repository: PendingUploadRepositoryDep,
    pdf_repository: PdfRecordRepositoryDep,
    rate_limiter: RateLimiterDep,
    settings: SettingsDep,
) -> UploadCoordinator:
    return create_upload_coordinator(blob_store, pending_repository, pdf_repository, rate_limiter, settings)


def get_library_service(blob_store: BlobStoreDep, pdf_repository: PdfRecordRepositoryDep) -> LibraryService:
    return create_library_service(blob_store, pdf_repository)


UploadCoordinatorDep = Annotated[UploadCoordinator, Depends(get_upload_coordinator)]
LibraryServiceDep = Annotated[LibraryService, Depends(get_library_service)]
