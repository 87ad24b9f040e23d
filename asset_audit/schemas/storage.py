from __future__ import annotations
from pydantic import BaseModel


class StorageMetrics(BaseModel):
    total_documents: int = 0
    document_store_size: int = 0
    blob_store_size: int = 0
    total_size: int = 0
    assessment_count: int = 0
    attachment_count: int = 0
    last_calculated: int = 0


class FormattedStorageMetrics(StorageMetrics):
    formatted_document_store_size: str
    formatted_blob_store_size: str
    formatted_total_size: str


class UserStorageBreakdown(BaseModel):
    user_id: str
    email: str
    metrics: StorageMetrics


class SystemStorageReport(BaseModel):
    total_users: int
    total_documents: int
    total_document_store_size: int
    total_blob_store_size: int
    total_system_size: int
    formatted_total_system_size: str
    user_breakdown: list[UserStorageBreakdown] = []
