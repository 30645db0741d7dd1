"""
Pydantic schemas for the registry wire format.

Defines the request bodies sent to the ASVP data endpoint and the typed
records parsed out of its `mParams` envelope.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from enum import Enum


class QueryKind(str, Enum):
    CASE = "getSharedInfoByVP"
    DOCUMENT = "otherDecisionDocument"


class CaseIdentifier(BaseModel):
    """Case number plus the access token the registry requires for it."""
    model_config = ConfigDict(frozen=True)

    case_number: str = Field(min_length=1)
    secret_code: str = Field(min_length=1)


class DocumentDescriptor(BaseModel):
    """
    Reference to a document inside a case (no content yet).

    A descriptor without an id is kept so the download step can report it
    as a failed document instead of rejecting the whole case.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    document_id: Optional[str] = Field(alias="id", default=None)
    file_name: str = Field(alias="fileName", default="")

    @field_validator("document_id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        # registry sends numeric ids for some cases
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip() or None
        return None

    @field_validator("file_name", mode="before")
    @classmethod
    def _coerce_name(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v if isinstance(v, str) else ""

    @property
    def is_valid(self) -> bool:
        return bool(self.document_id)


class CaseRecord(BaseModel):
    """Parsed case lookup. Metadata besides the document list is kept as-is."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    documents: List[DocumentDescriptor] = Field(alias="otherDocs", default_factory=list)

    @field_validator("documents", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            # a stray non-object entry becomes an id-less descriptor
            return [d if isinstance(d, (dict, DocumentDescriptor)) else {} for d in v]
        return v

    @model_validator(mode="after")
    def _unique_documents(self) -> "CaseRecord":
        seen = set()
        unique = []
        for doc in self.documents:
            if doc.is_valid:
                if doc.document_id in seen:
                    continue
                seen.add(doc.document_id)
            unique.append(doc)
        self.documents = unique
        return self


class DocumentPayload(BaseModel):
    """Document content as returned by the registry, base64 in `data`."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    file_name: Optional[str] = Field(alias="fileName", default=None)
    data: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.file_name) and bool(self.data)


class CaseFilter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    case_number: str = Field(serialization_alias="VpNum")
    secret_code: str = Field(serialization_alias="SecretNum")
    data_type: QueryKind = Field(default=QueryKind.CASE, serialization_alias="dataType")


class DocumentFilter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(serialization_alias="ID")
    secret_code: str = Field(serialization_alias="SecretNum")
    data_type: QueryKind = Field(default=QueryKind.DOCUMENT, serialization_alias="dataType")
    is_artifact: bool = Field(default=False, serialization_alias="isArtm")


class QueryRequest(BaseModel):
    """Body of a single POST to the data endpoint."""
    filter: Dict[str, Any]
    reCaptchaToken: str = ""
    reCaptchaAction: str = "view_document"

    @staticmethod
    def for_filter(query_filter: BaseModel) -> "QueryRequest":
        return QueryRequest(filter=query_filter.model_dump(mode="json", by_alias=True))


class QueryEnvelope(BaseModel):
    """Top-level response. A null `mParams` means the registry has no data."""
    model_config = ConfigDict(extra="allow")

    mParams: Optional[Dict[str, Any]] = None
